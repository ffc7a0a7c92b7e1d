"""CSV export and headline numbers for the admin dashboard."""

import csv
import io
from datetime import datetime
from typing import Optional

from evite.services.invitation_service import InvitationWithResponse

CSV_HEADERS = [
    "Name",
    "Phone",
    "Sent",
    "Opened",
    "Responded",
    "Attending",
    "Plus One",
    "Kids",
    "Menu",
    "Companion Menu",
    "Comment",
]

EMPTY = "-"


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else EMPTY


def _text(value: Optional[str]) -> str:
    if not value:
        return EMPTY
    return " ".join(value.splitlines())


def _row(item: InvitationWithResponse) -> list[str]:
    inv, resp = item.invitation, item.response
    row = [
        inv.guest_name,
        inv.phone,
        _timestamp(inv.sent_at),
        _timestamp(inv.opened_at),
        _timestamp(inv.responded_at),
    ]
    if resp is None:
        return row + [EMPTY] * 6
    return row + [
        _yes_no(resp.attending),
        _yes_no(resp.plus_one),
        str(resp.kids_count),
        _text(resp.menu_preference),
        _text(resp.companion_menu_preference),
        _text(resp.comment),
    ]


def build_invitations_csv(rows: list[InvitationWithResponse]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADERS)
    for item in rows:
        writer.writerow(_row(item))
    return buf.getvalue()


def dashboard_stats(rows: list[InvitationWithResponse]) -> dict:
    """Counts over the dashboard view. Headcount = guest + plus one + kids."""
    stats = {
        "invitations": len(rows),
        "sent": 0,
        "opened": 0,
        "responded": 0,
        "attending": 0,
        "declined": 0,
        "headcount": 0,
    }
    for item in rows:
        inv, resp = item.invitation, item.response
        stats["sent"] += inv.sent_at is not None
        stats["opened"] += inv.opened_at is not None
        if resp is None:
            continue
        stats["responded"] += 1
        if resp.attending:
            stats["attending"] += 1
            stats["headcount"] += 1 + int(resp.plus_one) + resp.kids_count
        else:
            stats["declined"] += 1
    return stats
