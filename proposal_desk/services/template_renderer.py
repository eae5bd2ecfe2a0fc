"""Proposal template rendering - Jinja2 templates stored in the template table."""

import logging
from typing import Any, Dict, Optional

from jinja2 import TemplateError, StrictUndefined, Undefined
from jinja2.sandbox import SandboxedEnvironment

from proposal_desk.core.config import get_settings, format_currency, format_date
from proposal_desk.core.exceptions import AppError, FieldError, ValidationError
from proposal_desk.models import ProposalDraft, ProposalTemplate
from proposal_desk.models.catalog import get_offering

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """
    Renders proposal drafts into HTML documents.

    Templates come from the database, so they run in Jinja2's sandbox with
    autoescaping on. ``currency`` and ``format_date`` filters are available.
    """

    def __init__(self, strict: bool = False):
        self._settings = None
        self.env = SandboxedEnvironment(
            autoescape=True,
            undefined=StrictUndefined if strict else Undefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["currency"] = format_currency
        self.env.filters["format_date"] = format_date

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def build_context(
        self,
        draft: ProposalDraft,
        client_email: Optional[str] = None,
        proposal_number: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Flatten a draft into the variables templates use."""
        info = draft.client_info
        offering = get_offering(draft.service_type)
        services = draft.pricing.effective_services()

        return {
            "proposal_number": proposal_number,
            "service_type": draft.service_type.value if draft.service_type else None,
            "service_label": offering.label if offering else "",
            "client_name": info.client_name,
            "client_position": info.client_position,
            "client_company": info.client_company,
            "client_address": info.client_address,
            "client_email": client_email or "",
            "proposal_date": info.proposal_date,
            "valid_until_date": info.validity_date,
            "validity_days": info.validity_days,
            "services": [
                {**line.model_dump(), "subtotal": line.subtotal} for line in services
            ],
            "pricing": draft.pricing.calculate().model_dump(),
            "terms": draft.terms.model_dump(),
            "service_details": draft.service_details.enabled_fields(),
            "contact_email": self.settings.CONTACT_EMAIL,
            "contact_phone": self.settings.CONTACT_PHONE,
        }

    def render(self, template_html: str, context: Dict[str, Any]) -> str:
        """
        Render template source with a context.

        Raises:
            ValidationError: The template source does not compile
            AppError: Rendering failed at runtime
        """
        try:
            template = self.env.from_string(template_html)
        except TemplateError as e:
            logger.error(f"Template syntax error: {e}")
            raise ValidationError(
                "Template could not be compiled",
                [FieldError(field="html_template", message=str(e))]
            )

        try:
            return template.render(**context)
        except TemplateError as e:
            logger.error(f"Template rendering failed: {e}")
            raise AppError(f"Template rendering failed: {e}")

    def render_draft(
        self,
        template: ProposalTemplate,
        draft: ProposalDraft,
        client_email: Optional[str] = None,
        proposal_number: Optional[str] = None,
    ) -> str:
        source = template.html_template or DEFAULT_TEMPLATE_HTML
        context = self.build_context(draft, client_email, proposal_number)
        html = self.render(source, context)
        logger.info(f"Rendered template {template.id} for {draft.client_info.client_company}")
        return html


DEFAULT_TEMPLATE_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Proposal for {{ client_company }}</title>
<style>
body { font-family: Arial, sans-serif; color: #1f2937; margin: 0; }
h1 { color: #15803d; font-size: 24px; }
h2 { color: #15803d; font-size: 18px; border-bottom: 2px solid #15803d; padding-bottom: 4px; }
table { width: 100%; border-collapse: collapse; margin: 12px 0; }
th, td { border: 1px solid #d1d5db; padding: 8px; text-align: left; }
th { background: #f0fdf4; }
.totals td { text-align: right; }
.muted { color: #6b7280; font-size: 12px; }
@media print { body { margin: 20mm; } }
</style>
</head>
<body>
<h1>{{ service_label or "Service Proposal" }}</h1>
{% if proposal_number %}<p class="muted">Proposal No. {{ proposal_number }}</p>{% endif %}
<p>{{ proposal_date | format_date }}</p>
<p>
<strong>{{ client_name }}</strong><br>
{% if client_position %}{{ client_position }}<br>{% endif %}
{{ client_company }}<br>
{{ client_address }}
</p>
<h2>Services</h2>
<table>
<thead>
<tr><th>Service</th><th>Quantity</th><th>Unit Price</th><th>Subtotal</th></tr>
</thead>
<tbody>
{% for line in services %}
<tr>
<td>{{ line.name }}{% if line.description %}<br><span class="muted">{{ line.description }}</span>{% endif %}</td>
<td>{{ line.quantity }}</td>
<td>{{ line.unit_price | currency }}</td>
<td>{{ line.subtotal | currency }}</td>
</tr>
{% endfor %}
</tbody>
</table>
<table class="totals">
<tr><td>Subtotal</td><td>{{ pricing.subtotal | currency }}</td></tr>
{% if pricing.discount %}<tr><td>Discount</td><td>-{{ pricing.discount | currency }}</td></tr>{% endif %}
<tr><td>VAT ({{ pricing.tax_rate }}%)</td><td>{{ pricing.tax | currency }}</td></tr>
<tr><td><strong>Total</strong></td><td><strong>{{ pricing.total | currency }}</strong></td></tr>
</table>
<h2>Terms &amp; Conditions</h2>
<p>Payment terms: {{ terms.payment_terms }}</p>
{% if terms.schedule %}<p>Schedule: {{ terms.schedule }}</p>{% endif %}
{% if terms.notes %}<p>{{ terms.notes }}</p>{% endif %}
<p class="muted">This proposal is valid for {{ validity_days }} days, until {{ valid_until_date | format_date }}.</p>
<p class="muted">Questions? {{ contact_email }}{% if contact_phone %} / {{ contact_phone }}{% endif %}</p>
</body>
</html>
"""

# Singleton instance
template_renderer = TemplateRenderer()
