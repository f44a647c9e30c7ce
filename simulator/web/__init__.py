from .dashboard import create_app, render_page

__all__ = [
    "create_app",
    "render_page",
]
