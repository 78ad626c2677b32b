from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

env = Environment(
    loader=PackageLoader("booking_pdf", "templates"),
    autoescape=select_autoescape(["html"]),
)


def render_booking_checklist(data: dict[str, Any]) -> str:
    """Render the checklist document from ``get_booking_pdf_template_data``."""
    return env.get_template("booking_checklist.html").render(**data)
