from __future__ import annotations

from bistro.application.dto.responses import PublicMenuResponse
from bistro.application.use_cases.get_menu import GetMenu
from bistro.domain.common.ids import TableId

MISSING_TABLE_WARNING = (
    "No table identified. Scan the QR code on your table to place an order."
)


class MissingTableParameterError(Exception):
    pass


def parse_table_param(*values: str | None) -> TableId | None:
    """First positive integer among the accepted query parameters."""
    for value in values:
        if value is None:
            continue
        try:
            table_id = int(value.strip())
        except ValueError:
            continue
        if table_id > 0:
            return TableId(table_id)
    return None


def require_table_param(*values: str | None) -> TableId:
    table_id = parse_table_param(*values)
    if table_id is None:
        raise MissingTableParameterError(MISSING_TABLE_WARNING)
    return table_id


class GetPublicMenu:
    def __init__(self, get_menu: GetMenu) -> None:
        self._get_menu = get_menu

    def execute(self, table_id: TableId | None) -> PublicMenuResponse:
        return PublicMenuResponse(
            menu=self._get_menu.execute(),
            tableId=table_id,
            checkoutEnabled=table_id is not None,
            warning=None if table_id is not None else MISSING_TABLE_WARNING,
        )
