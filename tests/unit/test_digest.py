"""Unit tests for the nightly inventory digest"""

from datetime import date

from dealer_backoffice.domain.digest import (
    assign_weekly_indices,
    build_digest,
    classify_status_logs,
    count_inventory,
    format_vehicle,
    render_digest_text,
)
from dealer_backoffice.domain.models import IndexedVehicle, ReportDigest, SaleRef, StatusLogEntry, VehicleRef

MONDAY = date(2024, 3, 4)
TUESDAY = date(2024, 3, 5)


def _vehicle(vehicle_id, year, model, vin4, status="Available", arrival=None):
    return VehicleRef(
        vehicle_id=vehicle_id,
        year=year,
        model=model,
        vin=f"1HGCM8263{vin4}",
        vin_last4=vin4,
        status=status,
        arrival_date=arrival,
    )


def _sale(year, model, vin4, sale_date):
    return SaleRef(year=year, model=model, vin=f"JT2BG22K{vin4}", vin_last4=vin4, sale_date=sale_date)


def test_format_vehicle():
    assert format_vehicle(_vehicle("1", "2019", "Corolla", "4352")) == "19 Corolla 4352"
    assert format_vehicle(_vehicle("1", None, "Corolla", "4352")) == "Corolla 4352"
    # VIN tail stands in when the last-4 column is empty
    sale = SaleRef(year="2015", model="Focus", vin="ABC123456", vin_last4="", sale_date=None)
    assert format_vehicle(sale) == "15 Focus 3456"


def test_assign_weekly_indices_orders_by_date():
    week = [("20 Civic 1111", TUESDAY), ("18 Altima 2222", MONDAY), ("17 Camry 4444", MONDAY)]
    today = [("20 Civic 1111", TUESDAY)]

    assert assign_weekly_indices(today, week) == [IndexedVehicle(vehicle="20 Civic 1111", weekly_index=3)]


def test_assign_weekly_indices_duplicate_keeps_first_number():
    week = [("20 Civic 1111", MONDAY), ("20 Civic 1111", MONDAY), ("19 Corolla 4352", TUESDAY)]
    indexed = assign_weekly_indices([("20 Civic 1111", MONDAY), ("19 Corolla 4352", TUESDAY)], week)
    assert [v.weekly_index for v in indexed] == [1, 3]


def test_assign_weekly_indices_missing_item_defaults_to_one():
    indexed = assign_weekly_indices([("21 Accord 5555", TUESDAY)], [])
    assert indexed[0].weekly_index == 1


def test_classify_status_logs():
    vehicles = {
        "a": _vehicle("a", "2018", "Altima", "2222"),
        "b": _vehicle("b", "2015", "Focus", "3333"),
        "c": _vehicle("c", "2017", "Camry", "4444"),
        "d": _vehicle("d", "2021", "Accord", "5555"),
        "e": _vehicle("e", "2016", "Sentra", "6666"),
    }
    logs = [
        StatusLogEntry(vehicle_id="a", previous_status="Available", new_status="Repairs"),
        StatusLogEntry(vehicle_id="b", previous_status="Available", new_status="Sent to Nashville"),
        StatusLogEntry(vehicle_id="c", previous_status="Repairs", new_status="Available"),
        StatusLogEntry(vehicle_id="d", previous_status="Available", new_status="Deposit"),
        StatusLogEntry(vehicle_id="e", previous_status="Deposit", new_status="Available"),
        StatusLogEntry(vehicle_id="missing", previous_status="Available", new_status="Repairs"),
    ]

    buckets = classify_status_logs(logs, vehicles)

    assert buckets == {
        "repairs": ["-18 Altima 2222"],
        "trash": ["-15 Focus 3333"],
        "received_back": ["+17 Camry 4444"],
        "deposit": ["21 Accord 5555"],
    }


def test_count_inventory_excludes_repairs():
    inventory = [
        _vehicle("1", "2019", "A", "0001", status="Available"),
        _vehicle("2", "2019", "B", "0002", status="Deposit"),
        _vehicle("3", "2019", "C", "0003", status="Cash"),
        _vehicle("4", "2019", "D", "0004", status="Repairs"),
        _vehicle("5", "2019", "E", "0005", status="Trash"),
    ]
    assert count_inventory(inventory) == (3, 2, 1)


def test_build_digest():
    civic = _vehicle("c1", "2020", "Civic", "1111", arrival=TUESDAY)
    altima = _vehicle("a1", "2018", "Altima", "2222", arrival=MONDAY)
    corolla = _sale("2019", "Corolla", "4352", TUESDAY)

    digest = build_digest(
        sold_today=[corolla],
        week_sales=[_sale("2010", "Fit", "0001", MONDAY), corolla],
        arrived_today=[civic],
        week_arrivals=[civic, altima],
        status_logs=[StatusLogEntry(vehicle_id="a1", previous_status="Available", new_status="Repairs")],
        vehicles_by_id={"a1": altima},
        inventory=[civic, altima],
    )

    assert digest.sold == [IndexedVehicle(vehicle="19 Corolla 4352", weekly_index=2)]
    assert digest.received_new == [IndexedVehicle(vehicle="20 Civic 1111", weekly_index=2)]
    assert digest.repairs == ["-18 Altima 2222"]
    assert (digest.total_inventory, digest.bhph_count, digest.cash_count) == (2, 2, 0)


def test_render_digest_text_full():
    digest = ReportDigest(
        sold=[IndexedVehicle(vehicle="19 Corolla 4352", weekly_index=3)],
        received_new=[IndexedVehicle(vehicle="20 Civic 1111", weekly_index=2)],
        repairs=["-18 Altima 2222"],
        trash=["-15 Focus 3333"],
        received_back=["+17 Camry 4444"],
        deposit=["21 Accord 5555"],
        total_inventory=29,
        bhph_count=28,
        cash_count=1,
    )

    assert render_digest_text(digest) == (
        "*Sold:*\n-19 Corolla 4352 /3\n\n"
        "*Deposit:*\n21 Accord 5555\n\n"
        "*From Nashville:*\n+20 Civic 1111 /2\n+17 Camry 4444\n\n"
        "*Sent to Shop:*\n-18 Altima 2222\n\n"
        "*To Nashville:*\n-15 Focus 3333\n\n"
        "29 (28 bhph/1 _CASH_)"
    )


def test_render_empty_digest_is_just_the_count():
    assert render_digest_text(ReportDigest()) == "0 (0 bhph/0 _CASH_)"
