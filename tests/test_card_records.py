import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from card_records import (
    DUAL_FACE,
    PLACEHOLDER,
    SINGLE_FACE,
    CardRecordError,
    EmployeeRecord,
    GuardianInfo,
    InsuranceInfo,
    StudentRecord,
    load_records,
    records_from_rows,
)


def _student(**overrides):
    values = dict(
        identifier="S-100",
        first_name="Ana",
        last_name="Ruiz",
        guardian=GuardianInfo(name="Luis Ruiz", identifier="79000111", celular_1="3001112233"),
        insurance=InsuranceInfo(policy_number="POL-9", emergency_line="018000", expiration_date="2026-06-30"),
        grade="7B",
    )
    values.update(overrides)
    return StudentRecord(**values)


class GuardianRowsTests(unittest.TestCase):
    def test_optional_fields_render_placeholder(self):
        rows = dict(_student().guardian.rows())
        self.assertEqual(rows["Celular 2"], PLACEHOLDER)
        self.assertEqual(rows["Email"], PLACEHOLDER)
        self.assertEqual(rows["Celular 1"], "3001112233")

    def test_row_order_is_fixed_regardless_of_population(self):
        sparse = GuardianInfo(name="A", identifier="1", celular_1="2")
        full = GuardianInfo(name="A", identifier="1", celular_1="2", celular_2="3", email="a@b.co")
        self.assertEqual([label for label, _ in sparse.rows()], [label for label, _ in full.rows()])

    def test_blank_optional_value_is_placeholder(self):
        guardian = GuardianInfo(name="A", identifier="1", celular_1="2", celular_2="   ")
        self.assertEqual(dict(guardian.rows())["Celular 2"], PLACEHOLDER)


class RecordValidationTests(unittest.TestCase):
    def test_employee_requires_identifier(self):
        with self.assertRaises(CardRecordError):
            EmployeeRecord(identifier="", name="Jane Doe", designation="Analyst")

    def test_employee_requires_name(self):
        with self.assertRaises(CardRecordError):
            EmployeeRecord(identifier="A1", name=None, designation="Analyst")

    def test_student_display_name_joins_parts(self):
        self.assertEqual(_student().display_name, "Ana Ruiz")
        self.assertEqual(_student(last_name="").display_name, "Ana")

    def test_student_requires_a_name_part(self):
        with self.assertRaises(CardRecordError):
            _student(first_name=" ", last_name=None)

    def test_field_rows_fill_missing_values(self):
        record = EmployeeRecord(identifier="A1", name="Jane Doe", designation="Analyst")
        rows = record.field_rows("2026-12-31")
        self.assertEqual(rows[0], ("ID", "A1"))
        self.assertEqual(rows[1], ("Teléfono", PLACEHOLDER))
        self.assertEqual(rows[-1], ("Valido", "2026-12-31"))
        self.assertTrue(3 <= len(rows) <= 5)

    def test_variants(self):
        record = EmployeeRecord(identifier="A1", name="Jane Doe", designation="Analyst")
        self.assertEqual(record.variant, SINGLE_FACE)
        self.assertFalse(record.has_back)
        self.assertEqual(_student().variant, DUAL_FACE)
        self.assertTrue(_student().has_back)


class RowConversionTests(unittest.TestCase):
    def test_variant_guessed_from_columns(self):
        rows = [{"id": "7", "first_name": "Ana", "last_name": "Ruiz", "guardian_name": "Luis"}]
        (record,) = list(records_from_rows(rows))
        self.assertIsInstance(record, StudentRecord)
        self.assertEqual(record.role_label, "ESTUDIANTE")

    def test_nan_values_are_treated_as_missing(self):
        rows = [{"id": "A1", "name": "Jane Doe", "designation": "Analyst", "phone": float("nan")}]
        (record,) = list(records_from_rows(rows, SINGLE_FACE))
        self.assertIsNone(record.phone)

    def test_error_reports_row_number(self):
        rows = [
            {"id": "A1", "name": "Jane Doe", "designation": "Analyst"},
            {"id": "", "name": "John Roe", "designation": "Analyst"},
        ]
        with self.assertRaises(CardRecordError) as ctx:
            list(records_from_rows(rows))
        self.assertIn("Row 2", str(ctx.exception))

    def test_unknown_variant(self):
        with self.assertRaises(CardRecordError):
            list(records_from_rows([{"id": "A1"}], "triple"))


class LoadRecordsTests(unittest.TestCase):
    def test_csv_sheet(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "staff.csv"
            path.write_text(
                "ID,Name,Designation,Phone,Address,Image\n"
                "A1,Jane Doe,Analyst,,Calle 1,\n"
                "B2,John Roe,Officer,555,Calle 2,missing.png\n",
                encoding="utf-8",
            )
            records = load_records(path)

        self.assertEqual([record.identifier for record in records], ["A1", "B2"])
        self.assertIsNone(records[0].phone)
        self.assertIsNone(records[0].portrait_source)
        self.assertEqual(records[1].portrait_source, "missing.png")

    def test_student_csv_sheet(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "students.csv"
            path.write_text(
                "id,first_name,last_name,institution,guardian_name,guardian_id,"
                "guardian_celular_1,guardian_celular_2,guardian_email,"
                "policy_number,emergency_line,policy_expiration\n"
                "S1,Ana,Ruiz,Colegio Central,Luis Ruiz,79,300,,,POL-1,123,2026-01-01\n",
                encoding="utf-8",
            )
            (record,) = load_records(path)

        self.assertIsInstance(record, StudentRecord)
        self.assertEqual(record.institution, "Colegio Central")
        self.assertIsNone(record.guardian.celular_2)
        self.assertEqual(record.insurance.policy_number, "POL-1")

    def test_json_sheet_keeps_numbers_with_nulls_in_column(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "staff.json"
            path.write_text(
                '[{"id": 101, "name": "Jane Doe", "designation": "Analyst", "phone": 3001112233},'
                ' {"id": 102, "name": "John Roe", "designation": "Officer", "phone": null}]',
                encoding="utf-8",
            )
            records = load_records(path)

        self.assertEqual([record.identifier for record in records], ["101", "102"])
        self.assertEqual(records[0].phone, "3001112233")
        self.assertIsNone(records[1].phone)

    def test_integral_floats_lose_trailing_zero(self):
        (record,) = records_from_rows(
            [{"id": 7.0, "name": "Jane Doe", "designation": "Analyst", "phone": 3001112233.0}],
            SINGLE_FACE,
        )
        self.assertEqual(record.identifier, "7")
        self.assertEqual(record.phone, "3001112233")


if __name__ == "__main__":
    unittest.main()
