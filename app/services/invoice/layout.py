"""
Invoice Table Layout

Pure pagination of the item table. Coordinates are measured in points
from the top of an A4 page; the renderer converts them for the canvas.

Rules:
    - the header row sits at TABLE_TOP, the first item row 30pt below it
    - every row advances ROW_HEIGHT
    - before a row is placed, a cursor beyond PAGE_BOTTOM starts a new
      page and the cursor resets to CONTINUATION_TOP (the header row is
      not repeated)
    - the totals/payment/footer block needs SUMMARY_HEIGHT below the
      cursor; if that would cross the bottom margin it moves to a new page
"""

from dataclasses import dataclass, field

PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89
MARGIN = 50

TABLE_TOP = 290
FIRST_ROW_OFFSET = 30
ROW_HEIGHT = 20
PAGE_BOTTOM = 650
CONTINUATION_TOP = 100
SUMMARY_HEIGHT = 180


@dataclass(frozen=True)
class RowPlacement:
    page: int
    y: float


@dataclass
class TableLayout:
    rows: list[RowPlacement] = field(default_factory=list)
    summary_page: int = 0
    summary_y: float = TABLE_TOP + FIRST_ROW_OFFSET

    @property
    def page_count(self) -> int:
        return self.summary_page + 1

    @property
    def row_page_breaks(self) -> int:
        """Number of page breaks caused by item rows."""
        return sum(
            1 for before, after in zip(self.rows, self.rows[1:])
            if after.page != before.page
        )


def layout_rows(row_count: int) -> TableLayout:
    """
    Place ``row_count`` item rows and the summary block.

    >>> layout_rows(2).rows
    [RowPlacement(page=0, y=320), RowPlacement(page=0, y=340)]
    """
    layout = TableLayout()
    page = 0
    y = TABLE_TOP + FIRST_ROW_OFFSET

    for _ in range(row_count):
        if y > PAGE_BOTTOM:
            page += 1
            y = CONTINUATION_TOP
        layout.rows.append(RowPlacement(page=page, y=y))
        y += ROW_HEIGHT

    if y + SUMMARY_HEIGHT > PAGE_HEIGHT - MARGIN:
        page += 1
        y = CONTINUATION_TOP

    layout.summary_page = page
    layout.summary_y = y
    return layout
