"""
Report rendering for a finished run: collision log, table dumps, PDF.
"""

import io
import os
import re
import zipfile
from typing import Tuple

from fpdf import FPDF

from probing.driver import BatchResult, RunResult

_PHASE_TITLES = {
    "random": "Random Order",
    "ascending": "Ascending Order",
    "descending": "Descending Order",
}


def render_collision_log(result: RunResult) -> str:
    out = []
    for phase in result.phases:
        out.append(f"*** {_PHASE_TITLES.get(phase.phase, phase.phase)} Start ***\n\n")
        for o in phase.outcomes:
            out.append(f"{o.key} : {o.value} -> {o.retrieved_text()}, collisions {o.collisions}\n")
            if not o.matched:
                out.append(f"Retrieved value {o.retrieved_text()} does not match stored value "
                           f"{o.value} for key {o.key}\n\n")
        out.append(f"\n{result.label} {phase.total_collisions} collisions\n")
        out.append("\n*** End ***\n\n")
    return "".join(out)


def render_tables(result: RunResult) -> str:
    """One table dump per phase, as the table looked when the phase ended."""
    return "".join(phase.dump for phase in result.phases)


def report_filenames(source: str, strategy: str) -> Tuple[str, str]:
    """
    in150.txt -> (out150_collisions_linear.txt, out150_tables_linear.txt)
    """
    stem = os.path.splitext(os.path.basename(source or ""))[0]
    digits = "".join(re.findall(r"\d+", stem))
    prefix = f"out{digits}" if digits else f"out_{stem or 'keys'}"
    return f"{prefix}_collisions_{strategy}.txt", f"{prefix}_tables_{strategy}.txt"


def build_pdf(result: RunResult) -> bytes:
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.cell(0, 10, f"{result.label}: table size {result.size}, "
                    f"{result.total_collisions} collisions",
             new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(4)

    col_widths = [40, 30, 40, 40]
    headers = ["Phase", "Keys", "Collisions", "Cumulative"]
    for i, h in enumerate(headers):
        pdf.cell(col_widths[i], 8, h, border=1)
    pdf.ln()
    for p in result.phases:
        pdf.cell(col_widths[0], 8, _PHASE_TITLES.get(p.phase, p.phase), border=1)
        pdf.cell(col_widths[1], 8, str(len(p.outcomes)), border=1)
        pdf.cell(col_widths[2], 8, str(p.collisions), border=1)
        pdf.cell(col_widths[3], 8, str(p.total_collisions), border=1)
        pdf.ln()
    pdf.ln(6)

    col_widths = [30, 50, 50]
    for i, h in enumerate(["Index", "Key", "Value"]):
        pdf.cell(col_widths[i], 8, h, border=1)
    pdf.ln()
    for slot in result.slots:
        pdf.cell(col_widths[0], 8, str(slot["index"]), border=1)
        pdf.cell(col_widths[1], 8, str(slot["key"])[:24], border=1)
        pdf.cell(col_widths[2], 8, str(slot["value"])[:24], border=1)
        pdf.ln()

    pdf_output = io.BytesIO()
    pdf.output(pdf_output)
    return pdf_output.getvalue()


def build_report_zip(batch: BatchResult) -> bytes:
    """
    Collision log and table dumps for every run, named by report_filenames.
    Failed runs are listed in errors.txt.
    """
    zip_output = io.BytesIO()
    with zipfile.ZipFile(zip_output, "w", zipfile.ZIP_DEFLATED) as zf:
        for source, result in batch.runs:
            collisions_name, tables_name = report_filenames(source, result.strategy)
            zf.writestr(collisions_name, render_collision_log(result))
            zf.writestr(tables_name, render_tables(result))
        if batch.failures:
            zf.writestr("errors.txt", "".join(
                f"{source} {strategy}: {message}\n" for source, strategy, message in batch.failures
            ))
    return zip_output.getvalue()
