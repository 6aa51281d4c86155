# server/render.py
"""
Print and table views of stored plans.

- render_plan_html(plan, signatures): standalone printable page
- history_rows(plans): flat rows for the dashboard table
"""

from datetime import datetime, timezone
from typing import Iterable, List

from jinja2 import Environment, select_autoescape

from .schemas import HistoryRowOut, Plan, SignaturePair

SECTION_TITLES = (
    ("concepts", "Concepts"),
    ("learning_outcomes", "Learning Outcomes"),
    ("pedagogical_strategies", "Pedagogical Strategies"),
    ("assessment_format", "Assessment Format"),
    ("resources", "Resources"),
    ("real_life_applications", "Real-life Applications"),
    ("values_skills", "Values & Skills"),
    ("reflections_and_remedial_plan", "Reflections & Remedial Plan"),
)

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

_PLAN_TEMPLATE = _env.from_string(
    """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>KVS Lesson Plan - {{ plan.meta.subject }} - Class {{ plan.meta.class_number }}</title>
<style>
  body { font-family: sans-serif; margin: 2rem; color: #1f2937; }
  header { border: 1px solid #e5e7eb; padding: 1rem; margin-bottom: 2rem; text-align: center; }
  h2 { border-bottom: 2px solid #bfdbfe; padding-bottom: .25rem; font-size: 1.1rem; }
  section { margin-bottom: 1.5rem; break-inside: avoid; }
  .signatures { display: flex; justify-content: space-around; margin-top: 4rem; }
  .signature { text-align: center; width: 12rem; }
  .signature img { max-height: 5rem; max-width: 100%; }
  .signature .line { border-bottom: 1px solid #6b7280; height: 5rem; }
</style>
</head>
<body>
<header>
  <h1>KVS Lesson Plan</h1>
  <div><strong>Class:</strong> {{ plan.meta.class_number }}</div>
  <div><strong>Subject:</strong> {{ plan.meta.subject }}</div>
  <div><strong>Date Range:</strong> {{ plan.meta.date_range }}</div>
</header>
{% for title, items in sections %}
<section>
  <h2>{{ title }}</h2>
  <ul>
  {% for item in items %}<li>{{ item }}</li>
  {% endfor %}
  </ul>
</section>
{% endfor %}
<div class="signatures">
  {% for label, image in signatures %}
  <div class="signature">
    {% if image %}<img src="{{ image }}" alt="{{ label }}">{% else %}<div class="line"></div>{% endif %}
    <p><strong>{{ label }}</strong></p>
  </div>
  {% endfor %}
</div>
</body>
</html>
"""
)


def render_plan_html(plan: Plan, signatures: SignaturePair) -> str:
    # empty sections are left out, same as the on-screen view
    sections = [
        (title, getattr(plan, field))
        for field, title in SECTION_TITLES
        if getattr(plan, field)
    ]
    return _PLAN_TEMPLATE.render(
        plan=plan,
        sections=sections,
        signatures=[
            ("Teacher's Signature", signatures.teacher),
            ("Principal's Signature", signatures.principal),
        ],
    )


def history_rows(plans: Iterable[Plan]) -> List[HistoryRowOut]:
    return [
        HistoryRowOut(
            id=p.id,
            generated_at=datetime.fromtimestamp(p.timestamp / 1000, tz=timezone.utc).isoformat(),
            class_number=p.meta.class_number,
            subject=p.meta.subject,
            date_range=p.meta.date_range,
        )
        for p in plans
    ]
