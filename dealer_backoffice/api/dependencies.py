"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import Optional

from fastapi import Depends, Query, Request

from dealer_backoffice.infrastructure.clients.export_server import ExportServerClient
from dealer_backoffice.infrastructure.clients.store import RowStoreClient
from dealer_backoffice.infrastructure.store.repositories import CollectionsRepository, InventoryRepository
from dealer_backoffice.services.collections import CollectionsService
from dealer_backoffice.services.export import ReportExporter
from dealer_backoffice.services.reports import NightlyReportService
from dealer_backoffice.utils.date_utils import today_local


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today(today: Optional[date] = Query(None, description="Override the business date (YYYY-MM-DD)")) -> date:
    """Business-local today unless the caller pins a date"""
    return today or today_local()


def get_store_client() -> RowStoreClient:
    """Provide row store client instance"""
    return RowStoreClient()


def get_export_client() -> ExportServerClient:
    """Provide export server client instance"""
    return ExportServerClient()


def get_collections_service(client: RowStoreClient = Depends(get_store_client)) -> CollectionsService:
    return CollectionsService(CollectionsRepository(client))


def get_nightly_report_service(client: RowStoreClient = Depends(get_store_client)) -> NightlyReportService:
    return NightlyReportService(InventoryRepository(client))


def get_report_exporter(client: ExportServerClient = Depends(get_export_client)) -> ReportExporter:
    return ReportExporter(client)
