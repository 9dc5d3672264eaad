from pathlib import Path
import tempfile
import unittest
import zipfile

from backtest_horizon.core.model import Numeric, Text
from backtest_horizon.core.normalize import coerce_cell
from backtest_horizon.loaders.csv_loader import (StructuralParseError, load, load_csv, load_zip,
                                                 parse_csv, parse_table)
from backtest_horizon.utils.detect import DetectedItem, discover_inputs


class CellCoercionTests(unittest.TestCase):
    def test_currency_decoration_is_stripped_before_numeric_test(self):
        self.assertEqual(Numeric(1234.5), coerce_cell("$1,234.50"))
        self.assertEqual(Numeric(12.5), coerce_cell(" 12.5% "))
        self.assertEqual(Numeric(-3.0), coerce_cell("-3"))

    def test_non_numeric_keeps_trimmed_original(self):
        self.assertEqual(Text("abc"), coerce_cell("  abc "))
        self.assertEqual(Text("$abc"), coerce_cell("$abc"))
        self.assertEqual(Text("2024-01-01"), coerce_cell("2024-01-01"))

    def test_empty_and_decoration_only_cells_are_text(self):
        self.assertEqual(Text(""), coerce_cell(""))
        self.assertEqual(Text(""), coerce_cell("   "))
        self.assertEqual(Text("$"), coerce_cell("$"))
        self.assertEqual(Text("$ %"), coerce_cell("$ %"))

    def test_non_finite_numbers_stay_text(self):
        self.assertEqual(Text("1e400"), coerce_cell("1e400"))
        self.assertEqual(Text("inf"), coerce_cell("inf"))
        self.assertEqual(Text("NaN"), coerce_cell("NaN"))


class ParseTableTests(unittest.TestCase):
    def test_records_follow_header_order_and_types(self):
        records = parse_csv(" name , value \nalpha,$10\nbeta,n/a\n")
        self.assertEqual(2, len(records))
        self.assertEqual(["name", "value"], list(records[0].keys()))
        self.assertEqual(Text("alpha"), records[0]["name"])
        self.assertEqual(Numeric(10.0), records[0]["value"])
        self.assertEqual(Text("n/a"), records[1]["value"])

    def test_rows_with_wrong_cell_count_are_skipped_and_logged(self):
        text = "a,b\n1,2\n3\n4,5,6\n7,8"
        with self.assertLogs("backtest_horizon.loaders.csv_loader", level="WARNING") as cm:
            table = parse_table(text)
        self.assertEqual(2, len(table.records))
        self.assertEqual((3, 4), table.skipped_rows)
        self.assertTrue(any("Row 3" in line for line in cm.output))
        self.assertEqual(Numeric(7.0), table.records[1]["a"])

    def test_any_line_ending_style(self):
        for sep in ("\n", "\r\n", "\r"):
            records = parse_csv(sep.join(["a,b", "1,2", "3,4"]))
            self.assertEqual(2, len(records), repr(sep))

    def test_empty_cell_is_empty_string(self):
        records = parse_csv("a,b\n,2")
        self.assertEqual(Text(""), records[0]["a"])

    def test_duplicate_header_last_value_wins(self):
        table = parse_table("a,a\n1,2")
        self.assertEqual(("a", "a"), table.header)
        self.assertEqual({"a": Numeric(2.0)}, table.records[0])

    def test_fewer_than_two_lines_fails(self):
        for text in ("", "a,b", "a,b\n\n  \n"):
            with self.assertRaises(StructuralParseError):
                parse_table(text)

    def test_all_rows_mismatched_yields_no_records(self):
        with self.assertLogs("backtest_horizon.loaders.csv_loader", level="WARNING"):
            table = parse_table("a,b,c\n1\n2")
        self.assertEqual([], table.records)
        self.assertEqual((2, 3), table.skipped_rows)


class LoadTests(unittest.TestCase):
    def test_loose_csv_and_zip_members(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            loose = root / "vault.csv"
            loose.write_text("\ufeffa,b\n1,2\n", encoding="utf-8")
            archive = root / "batch.zip"
            with zipfile.ZipFile(archive, "w") as zf:
                zf.writestr("z_second.csv", "x,y\n3,4\n")
                zf.writestr("a_first.csv", "x,y\n1,2\n")
                zf.writestr("notes.txt", "ignore me")

            [single] = load_csv(loose)
            self.assertEqual("vault.csv", single.name)
            self.assertEqual("a,b\n1,2\n", single.read())

            members = load_zip(archive)
            self.assertEqual(["batch.zip/a_first.csv", "batch.zip/z_second.csv"], [m.name for m in members])
            self.assertEqual("x,y\n3,4\n", members[1].read())

    def test_load_dispatches_on_detected_kind(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            archive = root / "batch.zip"
            with zipfile.ZipFile(archive, "w") as zf:
                zf.writestr("inner.csv", "x,y\n1,2\n")

            [item] = discover_inputs(root)
            self.assertEqual("csvzip", item.kind)
            self.assertEqual(["batch.zip/inner.csv"], [u.name for u in load(item)])

            with self.assertRaises(ValueError):
                load(DetectedItem(archive, "unknown"))


if __name__ == "__main__":
    unittest.main()
