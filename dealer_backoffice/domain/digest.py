"""Nightly inventory digest: what sold, arrived, moved and what is on the lot"""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from dealer_backoffice.domain.models import (
    IndexedVehicle,
    ReportDigest,
    SaleRef,
    StatusLogEntry,
    VehicleRef,
)

INVENTORY_STATUSES = ["Available", "Available (Pending Title)", "Deposit", "Repairs", "Cash"]
ACTIVE_STATUSES = {s for s in INVENTORY_STATUSES if s != "Repairs"}
BHPH_STATUSES = {s for s in INVENTORY_STATUSES if s not in ("Repairs", "Cash")}
RETURN_STATUSES = {"Available", "Available (Pending Title)"}
OUTBOUND_STATUSES = {"Trash", "Sent to Nashville"}

DatedItem = Tuple[str, Optional[date]]


def format_vehicle(vehicle: Union[VehicleRef, SaleRef]) -> str:
    """Short label 'YY Model VIN4', e.g. '19 Corolla 1234'"""
    year = str(vehicle.year)[-2:] if vehicle.year else ""
    vin_last4 = vehicle.vin_last4 or (vehicle.vin[-4:] if vehicle.vin else "")
    return f"{year} {vehicle.model or ''} {vin_last4}".strip()


def _item_key(label: str, day: Optional[date]) -> str:
    return f"{label}|{day.isoformat() if day else ''}"


def assign_weekly_indices(today_items: Sequence[DatedItem], week_items: Sequence[DatedItem]) -> List[IndexedVehicle]:
    """
    Number today's items by their position in the week so far.

    Week items are ordered by date (undated first, ties keep fetch order) and
    numbered from 1. A label/date pair seen twice keeps its first number; today
    items missing from the week list get 1.
    """
    ordered = sorted(week_items, key=lambda item: item[1] or date.min)
    index_by_key: Dict[str, int] = {}
    for position, (label, day) in enumerate(ordered, start=1):
        index_by_key.setdefault(_item_key(label, day), position)

    return [
        IndexedVehicle(vehicle=label, weekly_index=index_by_key.get(_item_key(label, day), 1))
        for label, day in today_items
    ]


def classify_status_logs(
    logs: Iterable[StatusLogEntry],
    vehicles: Mapping[str, VehicleRef],
) -> Dict[str, List[str]]:
    """Bucket today's status transitions into the digest's movement sections"""
    buckets: Dict[str, List[str]] = {"repairs": [], "trash": [], "received_back": [], "deposit": []}
    for log in logs:
        vehicle = vehicles.get(log.vehicle_id)
        if vehicle is None:
            continue
        label = format_vehicle(vehicle)

        if log.new_status == "Repairs":
            buckets["repairs"].append(f"-{label}")
        elif log.new_status in OUTBOUND_STATUSES:
            buckets["trash"].append(f"-{label}")
        elif log.previous_status == "Repairs" and log.new_status in RETURN_STATUSES:
            buckets["received_back"].append(f"+{label}")
        elif log.new_status == "Deposit":
            buckets["deposit"].append(label)
    return buckets


def count_inventory(inventory: Iterable[VehicleRef]) -> Tuple[int, int, int]:
    """(total, bhph, cash) over vehicles on the lot; Repairs and Sold are not counted"""
    total = bhph = cash = 0
    for vehicle in inventory:
        if vehicle.status not in ACTIVE_STATUSES:
            continue
        total += 1
        if vehicle.status in BHPH_STATUSES:
            bhph += 1
        if vehicle.status == "Cash":
            cash += 1
    return total, bhph, cash


def build_digest(
    sold_today: Sequence[SaleRef],
    week_sales: Sequence[SaleRef],
    arrived_today: Sequence[VehicleRef],
    week_arrivals: Sequence[VehicleRef],
    status_logs: Sequence[StatusLogEntry],
    vehicles_by_id: Mapping[str, VehicleRef],
    inventory: Sequence[VehicleRef],
) -> ReportDigest:
    """Assemble the nightly digest from the day's store reads"""
    sold = assign_weekly_indices(
        [(format_vehicle(s), s.sale_date) for s in sold_today],
        [(format_vehicle(s), s.sale_date) for s in week_sales],
    )
    received_new = assign_weekly_indices(
        [(format_vehicle(v), v.arrival_date) for v in arrived_today],
        [(format_vehicle(v), v.arrival_date) for v in week_arrivals],
    )
    movements = classify_status_logs(status_logs, vehicles_by_id)
    total, bhph, cash = count_inventory(inventory)

    return ReportDigest(
        sold=sold,
        received_new=received_new,
        repairs=movements["repairs"],
        trash=movements["trash"],
        received_back=movements["received_back"],
        deposit=movements["deposit"],
        total_inventory=total,
        bhph_count=bhph,
        cash_count=cash,
    )


def render_digest_text(digest: ReportDigest) -> str:
    """
    Plain-text digest for pasting into the group chat.

    Example:
        *Sold:*
        -19 Corolla 1234 /3

        29 (28 bhph/1 _CASH_)
    """
    sections: List[str] = []

    if digest.sold:
        sections.append("\n".join(["*Sold:*"] + [f"-{s.vehicle} /{s.weekly_index}" for s in digest.sold]))

    if digest.deposit:
        sections.append("\n".join(["*Deposit:*"] + digest.deposit))

    received = [f"+{r.vehicle} /{r.weekly_index}" for r in digest.received_new] + digest.received_back
    if received:
        sections.append("\n".join(["*From Nashville:*"] + received))

    if digest.repairs:
        sections.append("\n".join(["*Sent to Shop:*"] + digest.repairs))

    if digest.trash:
        sections.append("\n".join(["*To Nashville:*"] + digest.trash))

    sections.append(f"{digest.total_inventory} ({digest.bhph_count} bhph/{digest.cash_count} _CASH_)")
    return "\n\n".join(sections)
