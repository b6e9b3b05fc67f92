"""
Email rendering.

Turns an EmailKind plus a submission record into a (subject, html, text)
triple using the Jinja2 templates in site_api/templates/email. HTML templates
are autoescaped; text templates and subjects are not.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from site_api.models.email import EmailKind, RenderedEmail

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

SUBJECTS = {
    EmailKind.CONTACT_NOTIFICATION: "🔔 New Contact Form Submission from {{ name }}",
    EmailKind.CONTACT_CONFIRMATION: "Thank You for Contacting {{ brand }}",
    EmailKind.NEWSLETTER_NOTIFICATION: "📬 New Newsletter Subscription: {{ name or email }}",
    EmailKind.NEWSLETTER_CONFIRMATION: "Welcome to {{ brand }} Newsletter!",
    EmailKind.CATALOGUE_DELIVERY: "Your {{ brand }} Catalogue {{ year }}",
    EmailKind.CONTACT_FOLLOWUP: "Following Up on Your {{ brand }} Inquiry",
    EmailKind.NEWSLETTER_DAY3: "Discover Our Signature Collections - {{ brand }}",
    EmailKind.NEWSLETTER_DAY7: "Design Tips & Exclusive Offer - {{ brand }}",
}

DEFAULT_RESPONSE_TIME = "24-48 hours"

# (keywords, collection name, blurb, estimated response time)
# Checked in order: "bedroom" must come before the generic "room"
PROJECT_HIGHLIGHTS = [
    (("bedroom",), "Bedroom Collections",
     "Bedroom designs that combine comfort with sophisticated wood craftsmanship, creating serene retreats.",
     "24-48 hours"),
    (("living", "room"), "Living Room Collections",
     "Curated living room designs featuring custom wood panels, elegant furniture, and timeless architectural elements.",
     "24-48 hours"),
    (("kitchen",), "Kitchen Collections",
     "Kitchen designs featuring custom woodwork, cabinetry, and architectural elements for the heart of your home.",
     "48-72 hours"),
    (("workspace", "office"), "Workspace Collections",
     "Workspace solutions designed to inspire productivity with elegant wood furniture and thoughtful space planning.",
     "24-48 hours"),
    (("architectural", "wood"), "Architectural Wood Collections",
     "Bespoke architectural woodwork including custom panels, beams, and structural elements.",
     "48-72 hours"),
]


def project_highlight(project: Optional[str]) -> Tuple[Optional[Dict[str, str]], str]:
    """
    Pick the collection blurb matching a free-text project type.

    Returns:
        tuple: (highlight dict with title/blurb or None, estimated response time)
    """
    project_type = (project or "").lower()
    for keywords, title, blurb, response_time in PROJECT_HIGHLIGHTS:
        if any(keyword in project_type for keyword in keywords):
            return {"title": title, "blurb": blurb}, response_time
    return None, DEFAULT_RESPONSE_TIME


class EmailRenderer:
    """Renders transactional emails from records."""

    def __init__(self, brand: str, website_url: str, template_dir: Path = TEMPLATE_DIR):
        self.brand = brand
        self.website_url = website_url.rstrip("/")
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"], default_for_string=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def context_for(self, kind: EmailKind, record: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        context = {
            "name": record.get("name") or "",
            "email": record.get("email") or "",
            "project": record.get("project") or "",
            "message": record.get("message") or "",
            "display_name": record.get("name") or "Valued Subscriber",
            "brand": self.brand,
            "website_url": self.website_url,
            "timestamp": now.strftime("%B %d, %Y at %H:%M UTC"),
            "year": now.year,
            "highlight": None,
            "response_time": DEFAULT_RESPONSE_TIME,
        }
        if kind is EmailKind.CONTACT_CONFIRMATION:
            context["highlight"], context["response_time"] = project_highlight(record.get("project"))
        return context

    def render(self, kind: EmailKind, record: Dict[str, Any]) -> RenderedEmail:
        context = self.context_for(kind, record)
        subject = self.env.from_string(SUBJECTS[kind]).render(**context)
        html = self.env.get_template(f"{kind.value}.html").render(**context)
        text = self.env.get_template(f"{kind.value}.txt").render(**context)
        # header values may not contain line breaks
        subject = " ".join(subject.split())
        return RenderedEmail(subject=subject, html=html, text=text.strip())
