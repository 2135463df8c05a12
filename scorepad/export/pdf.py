"""
Session export as HTML -> PDF using WeasyPrint.

A4, one block per session: title, start/end, players, totals and, when the
snapshots carry them, the committed rounds.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Sequence

from jinja2 import BaseLoader, Environment, select_autoescape

from ..config import SiteConfig
from ..session.models import utc_now
from .snapshot import ExportSnapshot, export_filename

BASE_CSS = """
  @page { size:A4; margin:16mm; @bottom-center { content: counter(page) " / " counter(pages); font-size:8pt; color:#666; } }
  html, body { font-family: Inter, system-ui, -apple-system, "Segoe UI", Roboto, sans-serif; font-size: 10pt; color:#111; }
  header { border-bottom: 1px solid #ddd; padding-bottom: 6px; margin-bottom: 12px; }
  .h-title { font-size: 16pt; font-weight: 700; }
  .h-sub { font-size: 9pt; color:#555; }
  section.session { page-break-inside: avoid; border-left: 4px solid var(--accent, #6ee7ff); padding: 4px 0 8px 10px; margin-bottom: 14px; }
  .s-title { font-size: 13pt; font-weight: 700; }
  .s-meta { font-size: 9pt; color:#444; margin: 2px 0 6px; }
  table { border-collapse: collapse; font-variant-numeric: tabular-nums; }
  th, td { padding: 3px 8px; border-bottom: 1px solid #e5e7eb; }
  th { text-align: left; border-bottom: 1px solid #111; }
  td.num, th.num { text-align: right; }
  tr.total-row td { font-weight: 700; border-top: 1px solid #111; }
  footer { margin-top: 16px; color:#666; font-size: 8pt; }
"""

EXPORT_TEMPLATE = r"""
<!DOCTYPE html><html><head><meta charset="utf-8"><title>{{ site_name }} - Export</title>
<style>{{ base_css }}</style></head><body>
<header>
  <div class="h-title">{{ site_name }}</div>
  <div class="h-sub">Export of {{ generated_at }}{% if tagline %} · {{ tagline }}{% endif %}</div>
</header>
{% for s in snapshots %}
<section class="session" style="--accent: {{ s.accent or default_accent }}">
  <div class="s-title">{{ s.title }}</div>
  <div class="s-meta">Start: {{ fmt(s.started_at) }} &nbsp;|&nbsp; End: {{ fmt(s.ended_at) if s.ended_at else "-" }}</div>
  <div class="s-meta">Players: {{ s.players | map(attribute="pseudo") | join(", ") }}</div>
  <table>
    <thead>
      <tr>
        <th>{% if s.includes_rounds %}Round{% endif %}</th>
        {% for p in s.players %}<th class="num">{{ p.pseudo }}</th>{% endfor %}
      </tr>
    </thead>
    <tbody>
      {% if s.includes_rounds %}
      {% for r in s.rounds %}
      <tr>
        <td>#{{ r.number }}</td>
        {% for score in r.scores %}<td class="num">{{ score }}</td>{% endfor %}
      </tr>
      {% endfor %}
      {% endif %}
      <tr class="total-row">
        <td>Total</td>
        {% for p in s.players %}<td class="num">{{ p.total }}</td>{% endfor %}
      </tr>
    </tbody>
  </table>
</section>
{% endfor %}
{% if footer_text %}<footer>{{ footer_text }}</footer>{% endif %}
</body></html>
"""


def _format_datetime(value: datetime) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def render_html(
    snapshots: Sequence[ExportSnapshot],
    site: SiteConfig | None = None,
    generated_at: datetime | None = None,
    template: str = EXPORT_TEMPLATE,
) -> str:
    site = site or SiteConfig()
    env = Environment(loader=BaseLoader(), autoescape=select_autoescape(default_for_string=True))
    tmpl = env.from_string(template)
    return tmpl.render(
        base_css=BASE_CSS,
        site_name=site.site_name,
        tagline=site.tagline,
        footer_text=site.footer_text,
        default_accent=site.ui.default_accent,
        generated_at=_format_datetime(generated_at or utc_now()),
        snapshots=list(snapshots),
        fmt=_format_datetime,
    )


def render_with_weasyprint(html: str, out_pdf_path: Path) -> int:
    """Write html as a PDF. Returns the page count."""
    try:
        from weasyprint import HTML
    except Exception as e:
        raise RuntimeError(
            "WeasyPrint is not installed. Install with: pip install weasyprint\n"
            "Docs: https://doc.courtbouillon.org/weasyprint/stable/first_steps.html#installation"
        ) from e
    try:
        doc = HTML(string=html, base_url=str(Path.cwd())).render()
        out_pdf_path.parent.mkdir(parents=True, exist_ok=True)
        doc.write_pdf(target=str(out_pdf_path))
        return len(getattr(doc, "pages", []) or [])
    except Exception as e:
        raise RuntimeError(
            "WeasyPrint rendering failed. Native libraries (pango, cairo, harfbuzz) may be missing.\n"
            "See: https://doc.courtbouillon.org/weasyprint/stable/first_steps.html#installation\n"
            "Error: " + str(e)
        ) from e


def generate_export_pdf(
    snapshots: Sequence[ExportSnapshot],
    out_dir: str | Path,
    site: SiteConfig | None = None,
    now: datetime | None = None,
) -> tuple[Path, int]:
    """
    Render snapshots to ``<out_dir>/scorepad-export-<millis>.pdf``.

    Returns (path, page count).
    """
    now = now or utc_now()
    out_path = Path(out_dir) / export_filename(now)
    html = render_html(snapshots, site=site, generated_at=now)
    pages = render_with_weasyprint(html, out_path)
    return out_path, pages
