# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/report_writer.py
"""
dhcp2static report writer.

Writes a JSON report (always) and a Markdown summary next to it when the
requested path is not a .json file.
"""

from __future__ import annotations

import datetime as _dt
import os
import socket
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..core.file_ops import atomic_write_bytes
from ..core.utils import U
from .fleet import FleetReport

SCHEMA = "dhcp2static.report.v1"


def _json_safe(obj: Any) -> Any:
    """
    Convert common non-JSON-native objects into JSON-safe representations
    (Paths, Enums, dataclasses, datetimes, bytes).
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (_dt.datetime, _dt.date)):
        return obj.isoformat()
    if isinstance(obj, (bytes, bytearray)):
        b = bytes(obj)
        return {"_type": "bytes", "len": len(b), "prefix_hex": b[:32].hex()}
    if is_dataclass(obj) and not isinstance(obj, type):
        return _json_safe(asdict(obj))
    # Enums
    v = getattr(obj, "value", None)
    if v is not None and not isinstance(obj, (dict, list, tuple, set)):
        return _json_safe(v)
    if isinstance(obj, dict):
        return {str(k): _json_safe(v2) for k, v2 in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_json_safe(x) for x in obj]
    return str(obj)


def _json_sidecar_path(base: Path) -> Path:
    """
    report.json -> report.json
    report.md   -> report.json
    report      -> report.json
    """
    if base.suffix.lower() == ".json":
        return base
    if base.suffix:
        return base.with_suffix(".json")
    return Path(str(base) + ".json")


def _markdown_path_for_base(base: Path) -> Optional[Path]:
    if base.suffix.lower() == ".json":
        return None
    if base.suffix:
        return base
    return Path(str(base) + ".md")


def _controller_meta() -> Dict[str, Any]:
    meta: Dict[str, Any] = {"hostname": socket.gethostname(), "uid": None, "user": None}
    try:
        meta["uid"] = os.geteuid()
    except AttributeError:
        pass
    meta["user"] = os.environ.get("SUDO_USER") or os.environ.get("USER") or None
    return meta


def build_report(
    fleet: FleetReport,
    *,
    dry_run: bool = False,
    started_at: Optional[_dt.datetime] = None,
    finished_at: Optional[_dt.datetime] = None,
) -> Dict[str, Any]:
    finished_at = finished_at or _dt.datetime.now(_dt.timezone.utc)
    return _json_safe(
        {
            "schema": SCHEMA,
            "run": {
                "version": __version__,
                "dry_run": dry_run,
                "started_at": started_at,
                "finished_at": finished_at,
            },
            "controller": _controller_meta(),
            "summary": {
                "hosts": len(fleet.results),
                "exit_code": fleet.exit_code,
                "counts": fleet.counts(),
            },
            "hosts": [r.to_dict() for r in fleet.results],
        }
    )


def _build_markdown(report: Dict[str, Any]) -> str:
    md: List[str] = ["# dhcp2static Report", ""]
    run = report.get("run", {})
    summary = report.get("summary", {})
    md.append(f"- version: `{run.get('version')}`")
    md.append(f"- dry-run: `{run.get('dry_run')}`")
    md.append(f"- exit code: `{summary.get('exit_code')}`")
    md.append("")
    md.append("| host | status | final state | exit |")
    md.append("|---|---|---|---|")
    for h in report.get("hosts", []):
        md.append(f"| {h['host']} | {h['status']} | {h['final_state']} | {h['exit_code']} |")
    md.append("")
    for h in report.get("hosts", []):
        md.append(f"## {h['host']}")
        md.append("")
        for d in h.get("diagnostics", []):
            out = " ".join(str(d.get("output") or "").split())
            md.append(f"- **{d['step']}** {d['outcome']}" + (f": {out}" if out else ""))
        if h.get("quarantined"):
            md.append("")
            md.append("Quarantined: " + ", ".join(f"`{p}`" for p in h["quarantined"]))
        md.append("")
    return "\n".join(md)


def write_report(
    path: Path,
    fleet: FleetReport,
    *,
    dry_run: bool = False,
    started_at: Optional[_dt.datetime] = None,
) -> List[Path]:
    """Write JSON (+ Markdown unless path is .json). Returns the written paths."""
    base = Path(path).expanduser()
    U.ensure_dir(base.parent)
    report = build_report(fleet, dry_run=dry_run, started_at=started_at)

    written: List[Path] = []
    jpath = _json_sidecar_path(base)
    atomic_write_bytes(jpath, (U.json_dump(report) + "\n").encode("utf-8"), mode=0o600)
    written.append(jpath)

    mpath = _markdown_path_for_base(base)
    if mpath is not None:
        atomic_write_bytes(mpath, _build_markdown(report).encode("utf-8"), mode=0o600)
        written.append(mpath)
    return written
