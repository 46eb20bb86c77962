from __future__ import annotations

"""Dependency helpers returning the services wired in ``create_app``."""

from fastapi import Request

from ..ledger import OrderLedger
from ..services.kitchen import KitchenDispatch
from ..services.settlement import SettlementCoordinator
from ..tables import TableRegistry


def get_tables(request: Request) -> TableRegistry:
    return request.app.state.tables


def get_ledger(request: Request) -> OrderLedger:
    return request.app.state.ledger


def get_settlement(request: Request) -> SettlementCoordinator:
    return request.app.state.settlement


def get_kitchen(request: Request) -> KitchenDispatch:
    return request.app.state.kitchen


def get_catalog(request: Request):
    return request.app.state.catalog


def get_payments(request: Request):
    return request.app.state.payments
