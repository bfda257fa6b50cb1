# Report rendering for stored analysis reports (PDF / CSV / JSON).
# Uses ONLY fields present in the analysis result schema:
# {
#   "totalPackets": <int>,
#   "packetDetails": [ {"srcIP": "...", "dstIP": "...", "protocol": "...", "packetSize": <int>}, ... ],
#   "threats": [ {"type": "...", "description": "..."}, ... ],
#   "timestamp": "..."
# }
# Missing fields are rendered as "-" rather than failing.

from __future__ import annotations

import csv
import io
import json
import os
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Tuple
from xml.sax.saxutils import escape

# --- ReportLab ---
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Paragraph, Table, TableStyle, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

__all__ = [
    "render_report",               # (bytes, mimetype, extension) for a stored report
    "build_pdf_bytes_from_json",   # PDF bytes from an in-memory analysis result
    "build_csv_bytes_from_json",   # CSV bytes (packet details) from an analysis result
]

# PDF tables stay readable; the CSV/JSON exports carry every packet.
MAX_PDF_PACKET_ROWS = 500

CSV_COLUMNS = ["srcIP", "dstIP", "protocol", "packetSize"]

# =========================
# Fonts (avoid tofu/blocks)
# =========================

def _try_reg(name, path):
    if not os.path.exists(path):
        return False
    try:
        pdfmetrics.registerFont(TTFont(name, path))
    except Exception:
        # Unreadable/unsupported TTF: fall back to the built-in Helvetica
        return False
    return True

def ensure_fonts():
    candidates = [
        ("DejaVuSans", "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
        ("DejaVuSans", "/Library/Fonts/DejaVu Sans.ttf"),
        ("DejaVuSans", "C:\\Windows\\Fonts\\DejaVuSans.ttf"),
    ]
    for name, path in candidates:
        if _try_reg(name, path):
            return True
    return False

# =========================
# Data extraction (STRICT)
# =========================

def extract_core_fields(data: Any) -> Dict[str, Any]:
    """
    Pull ONLY fields that exist in the analysis result schema.
    """
    if not isinstance(data, dict):
        data = {}

    details = [d for d in (data.get("packetDetails") or []) if isinstance(d, dict)]
    threats = [t for t in (data.get("threats") or []) if isinstance(t, dict)]

    proto_counts = Counter(str(d.get("protocol") or "-") for d in details)
    pair_counts = Counter(f"{d.get('srcIP', '-')}->{d.get('dstIP', '-')}" for d in details)

    return {
        "total_packets": data.get("totalPackets"),
        "timestamp": data.get("timestamp"),
        "decoded_packets": len(details),
        "partial": bool(data.get("partial")),
        "protocols": sorted(proto_counts.items(), key=lambda kv: (-kv[1], kv[0])),
        "top_connections": pair_counts.most_common(10),
        "threat_rows": [[t.get("type") or "-", t.get("description") or "-"] for t in threats],
        "packet_rows": [[d.get(c, "-") for c in CSV_COLUMNS] for d in details],
    }

# =========================
# PDF pieces
# =========================

def _p(text, style):
    return Paragraph(escape(str(text)), style)

def header_footer(canvas, doc, title):
    canvas.saveState()
    w,h=doc.pagesize
    canvas.setFont("Helvetica-Bold", 10)
    canvas.drawString(20*mm, h-15*mm, title)
    canvas.setStrokeColorRGB(0.2,0.2,0.2)
    canvas.setLineWidth(0.5)
    canvas.line(15*mm, h-17*mm, w-15*mm, h-17*mm)
    canvas.setFont("Helvetica", 8)
    canvas.drawString(20*mm, 12*mm, f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    canvas.drawRightString(w-20*mm, 12*mm, f"Page {doc.page}")
    canvas.restoreState()

def _table(rows: List[List[Any]], weights: List[float], header_font, body_font, page_width, right_cols=()):
    scale = page_width / sum(weights)
    col_widths=[w*scale for w in weights]

    t=Table(rows, colWidths=col_widths, hAlign="LEFT", repeatRows=1)
    style = [
        ("WORDWRAP",(0,0),(-1,-1),1),
        ("FONTNAME",(0,0),(-1,0),header_font), ("FONTSIZE",(0,0),(-1,0),9.5),
        ("BACKGROUND",(0,0),(-1,0),colors.HexColor("#EDEDED")), ("TEXTCOLOR",(0,0),(-1,0),colors.HexColor("#333333")),
        ("FONTNAME",(0,1),(-1,-1),body_font), ("FONTSIZE",(0,1),(-1,-1),9),
        ("VALIGN",(0,0),(-1,-1),"TOP"),
        ("GRID",(0,0),(-1,-1),0.25,colors.HexColor("#CFCFCF")),
        ("ROWBACKGROUNDS",(0,1),(-1,-1),[colors.white, colors.HexColor("#FBFBFB")]),
    ]
    for c in right_cols:
        style.append(("ALIGN",(c,1),(c,-1),"RIGHT"))
    t.setStyle(TableStyle(style))
    return t

def threats_table(rows, styles, header_font, body_font, page_width=450):
    header = ["Type", "Description"]
    if not rows:
        rows = [header, ["-", "No threats detected."]]
    else:
        rows = [header] + [[_p(r[0], styles["Cell"]), _p(r[1], styles["Cell"])] for r in rows]
    return _table(rows, [1.0, 3.0], header_font, body_font, page_width)

def counts_table(header: List[str], pairs: List[Tuple[str, int]], styles, header_font, body_font, page_width=450):
    rows = [header]
    if not pairs:
        rows.append(["-", "-"])
    for k, v in pairs:
        rows.append([_p(k, styles["Cell"]), _p(v, styles["CellNum"])])
    return _table(rows, [2.0, 1.0], header_font, body_font, page_width, right_cols=(1,))

def packets_table(rows, header_font, body_font, page_width=450):
    header = ["Source", "Destination", "Protocol", "Size"]
    body = [[str(c) for c in r] for r in rows[:MAX_PDF_PACKET_ROWS]] or [["-","-","-","-"]]
    return _table([header] + body, [1.5, 1.5, 1.0, 0.7], header_font, body_font, page_width, right_cols=(3,))

# =========================
# Story builder
# =========================

def _build_story(core: Dict[str, Any], title: str, doc_width: float):
    got_sans = ensure_fonts()
    body_font = "DejaVuSans" if got_sans else "Helvetica"
    header_font = body_font

    styles=getSampleStyleSheet()
    styles.add(ParagraphStyle(name="H1X", parent=styles["Heading1"], fontName=header_font, fontSize=16, leading=19, spaceAfter=6))
    styles.add(ParagraphStyle(name="H2X", parent=styles["Heading2"], fontName=header_font, fontSize=13, leading=16, spaceAfter=4))
    styles.add(ParagraphStyle(name="BodyX", parent=styles["BodyText"], fontName=body_font, fontSize=10, leading=13, spaceAfter=8))
    styles.add(ParagraphStyle(name="Cell", parent=styles["BodyText"], fontName=body_font, fontSize=9, leading=12,
                              wordWrap="CJK", spaceAfter=0, spaceBefore=0))
    styles.add(ParagraphStyle(name="CellNum", parent=styles["Cell"], alignment=2))

    ov_blocks = [
        f"Analyzed at: {core.get('timestamp') or '-'}",
        f"Total packets: {core.get('total_packets') if core.get('total_packets') is not None else '-'}",
        f"IPv4 packets: {core.get('decoded_packets')}",
        f"Threats: {len(core.get('threat_rows') or [])}",
    ]
    if core.get("partial"):
        ov_blocks.append("Partial result (capture truncated)")

    story=[]
    story += [_p(title, styles["H1X"]), Spacer(1,2)]
    story += [Paragraph("Overview", styles["H2X"]),
              _p(" | ".join(ov_blocks), styles["BodyX"]),
              Spacer(1,4)]

    story += [Paragraph("Threats", styles["H2X"]),
              threats_table(core.get("threat_rows") or [], styles, header_font, body_font, page_width=doc_width),
              Spacer(1,8)]

    story += [Paragraph("Protocols", styles["H2X"]),
              counts_table(["Protocol", "Packets"], core.get("protocols") or [], styles, header_font, body_font, page_width=doc_width),
              Spacer(1,8)]

    story += [Paragraph("Top connections", styles["H2X"]),
              counts_table(["Connection", "Packets"], core.get("top_connections") or [], styles, header_font, body_font, page_width=doc_width),
              Spacer(1,8)]

    packet_rows = core.get("packet_rows") or []
    heading = "Packets"
    if len(packet_rows) > MAX_PDF_PACKET_ROWS:
        heading = f"Packets (first {MAX_PDF_PACKET_ROWS} of {len(packet_rows)}; export CSV for all)"
    story += [Paragraph(heading, styles["H2X"]),
              packets_table(packet_rows, header_font, body_font, page_width=doc_width)]
    return story

# =========================
# Public builders
# =========================

def build_pdf_bytes_from_json(input_data: Any, title: str, use_landscape: bool = False) -> bytes:
    core = extract_core_fields(input_data)
    pagesize = landscape(A4) if use_landscape else A4
    buf = io.BytesIO()
    doc=SimpleDocTemplate(buf, pagesize=pagesize, leftMargin=18*mm, rightMargin=18*mm,
                          topMargin=25*mm, bottomMargin=18*mm, title=title)
    story = _build_story(core, title, doc.width)
    doc.build(story, onFirstPage=lambda c,d: header_footer(c,d,title),
                    onLaterPages=lambda c,d: header_footer(c,d,title))
    return buf.getvalue()

def build_csv_bytes_from_json(input_data: Any) -> bytes:
    core = extract_core_fields(input_data)
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(CSV_COLUMNS)
    w.writerows(core["packet_rows"])
    return out.getvalue().encode("utf-8")

def render_report(report: Dict[str, Any]) -> Tuple[bytes, str, str]:
    """
    Render a stored report in its reportType.

    Returns (payload, mimetype, file extension).
    """
    rtype = str(report.get("reportType") or "JSON").upper()
    data = report.get("data")
    if rtype == "PDF":
        title = str(report.get("reportName") or "PCAP Analysis Report")
        return build_pdf_bytes_from_json(data, title), "application/pdf", "pdf"
    if rtype == "CSV":
        return build_csv_bytes_from_json(data), "text/csv", "csv"
    return json.dumps(report, indent=2).encode("utf-8"), "application/json", "json"
