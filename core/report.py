# core/report.py
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from core.models import ResultRow

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))


def format_row(row: ResultRow) -> str:
    return f"{row.item_name} - {row.variant_name} - price ${row.variant_price}"


env.filters["result_line"] = format_row


def build_plaintext_report(rows: List[ResultRow]) -> str:
    """One line per variant: "<item> - <variant> - price $<price>"."""
    template = env.get_template("results.txt")
    return template.render(rows=rows)


def no_results_message(search_term: str) -> str:
    return f'No items found matching "{search_term}".'
