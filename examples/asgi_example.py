"""
Example: Serving an rsvp handler with ASGI servers.

One handler serves HTML to browsers, JSON to API clients, plain text to
curl and a gob or MessagePack stream to anything that asks for it.

Run with:
    uvicorn examples.asgi_example:app --reload

Then try:
    curl -i localhost:8000/posts
    curl -i localhost:8000/posts.txt
    curl -i -H 'Accept: application/xml' localhost:8000/posts
    curl -i -X POST localhost:8000/posts
"""

from dataclasses import dataclass, field
from typing import List

from rsvp import Config, HTTPMethod, blank, data, default_registry, html_templates, text_templates
from rsvp import msgpack_support
from rsvp.adapters import ASGIAdapter


@dataclass
class Post:
    title: str
    body: str
    tags: List[str] = field(default_factory=list)


posts = [
    Post("Hello World", "First post", ["intro"]),
    Post("Second Post", "Another post"),
]


def posts_handler(w, r):
    """List posts, or pretend to create one."""
    if r.method == HTTPMethod.POST:
        return blank().status_see_other("/posts")

    w.default_template_name("posts")
    return data(posts)


def home(w, r):
    return data("Welcome to the rsvp ASGI example. See /posts\n")


def router(w, r):
    if r.path.split(".", 1)[0] == "/posts":
        return posts_handler(w, r)
    return home(w, r)


registry = default_registry()
msgpack_support.install(registry)

config = Config(
    html_template=html_templates({
        "posts": (
            "<ul>{% for post in data %}"
            "<li><strong>{{ post.title }}</strong> {{ post.body }}</li>"
            "{% endfor %}</ul>"
        ),
    }),
    text_template=text_templates({
        "posts": "{% for post in data %}{{ post.title }}: {{ post.body }}\n{% endfor %}",
    }),
    json_indent="  ",
    registry=registry,
)

# Create the ASGI application - this is what the ASGI server will use
app = ASGIAdapter(router, config)

# You can also use the convenience function:
# from rsvp import create_asgi_app
# app = create_asgi_app(router, config)
