from __future__ import annotations

from pathlib import Path

import pandas as pd

from dqrepair.cli import main as cli_main
from dqrepair.logging.init import reset_logging
from dqrepair.models.schema import COLUMN_NAMES


def test_reordered_feed_with_bad_rows(temp_workdir: Path, write_config, write_feed, feed_line, capsys):
    reset_logging()
    order = [1, 0, *range(len(COLUMN_NAMES) - 1, 1, -1)]  # CUID:RUID:TAX:...:FNAME

    def reorder(line: str) -> str:
        fields = line.split(":")
        return ":".join(fields[i] for i in order)

    write_feed(
        [
            reorder(feed_line(1, "c1")),
            reorder(feed_line(2, "c1", CITY="Chicag0")),
            reorder(feed_line(2, "c2", SSN="222222222")),  # ruid 重複
            reorder(feed_line(3, "c1")) + ":extra",  # 列数不一致
        ],
        header=":".join(COLUMN_NAMES[i] for i in order),
    )

    code = cli_main([])

    out = capsys.readouterr().out
    assert code == 2
    assert "rows=4 ingested=3 rejected=1 malformed=1 entities=1 invalid_entities=1" in out
    assert "WARN 2 row problems recorded in" in out

    frame = pd.read_csv(temp_workdir / "out" / "repairs.csv", dtype=str, keep_default_na=False)
    # 列数不一致の行は全属性が多数決で揃えられる (値は同一なので CITY のみ)
    assert list(frame.itertuples(index=False, name=None)) == [("2", "CITY", "Chicago")]
