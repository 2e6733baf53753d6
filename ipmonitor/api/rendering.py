from __future__ import annotations

from html import escape
from typing import Iterable, Optional, Sequence

from ipmonitor.api.pagination import Pagination
from ipmonitor.models.record import Record

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MISSING = "n/a"


def format_time(record: Record) -> str:
  # Rendered in the server's local time for readability.
  return record.timestamp.astimezone().strftime(TIME_FORMAT)


def format_latency(record: Record) -> str:
  latency_ms = record.latency_ms
  if latency_ms is None:
    return MISSING
  return f"{latency_ms:.0f} ms"


def format_mbps(value: float, record: Record) -> str:
  if record.latency is None and value == 0.0:
    return MISSING
  return f"{value:.2f}"


def render_history_page(
  records: Sequence[Record],
  pagination: Pagination,
  *,
  error: Optional[str] = None,
) -> str:
  head = (
    "<!DOCTYPE html><html lang='en'><head><meta charset='utf-8'>"
    "<title>IP Monitor</title>"
    "<link rel='stylesheet' href='/static/style.css'>"
    "</head><body><main>"
    "<h1>IP Monitor</h1>"
  )
  banner = f"<p class='error-banner'>{escape(error)}</p>" if error else ""
  return head + banner + _render_table(records) + _render_nav(pagination) + "</main></body></html>"


def _render_table(records: Iterable[Record]) -> str:
  rows = []
  for record in records:
    css_class = "ok" if record.succeeded else "failed"
    rows.append(
      f"<tr class='{css_class}'>"
      f"<td>{escape(format_time(record))}</td>"
      f"<td>{escape(record.ip_address) or MISSING}</td>"
      f"<td>{format_latency(record)}</td>"
      f"<td>{format_mbps(record.download_mbps, record)}</td>"
      f"<td>{format_mbps(record.upload_mbps, record)}</td>"
      f"<td>{escape(record.error)}</td>"
      "</tr>"
    )
  if not rows:
    rows.append("<tr><td colspan='6' class='empty'>No records yet.</td></tr>")
  return (
    "<table><thead><tr>"
    "<th>Time</th><th>IP address</th><th>Latency</th>"
    "<th>Download (Mbps)</th><th>Upload (Mbps)</th><th>Error</th>"
    "</tr></thead><tbody>" + "".join(rows) + "</tbody></table>"
  )


def _render_nav(pagination: Pagination) -> str:
  links = []
  if pagination.has_prev_page:
    links.append(f"<a href='/?page={pagination.prev_page}'>&laquo; Prev</a>")
  for page in pagination.pages:
    if page == pagination.current_page:
      links.append(f"<span class='current'>{page}</span>")
    else:
      links.append(f"<a href='/?page={page}'>{page}</a>")
  if pagination.has_next_page:
    links.append(f"<a href='/?page={pagination.next_page}'>Next &raquo;</a>")
  summary = f"<span class='summary'>Page {pagination.current_page} of {pagination.total_pages}</span>"
  return "<nav class='pagination'>" + " ".join(links) + summary + "</nav>"
