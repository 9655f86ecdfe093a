import unittest
from datetime import datetime, timedelta, timezone

from memorial.date_parser import death_date_range, parse_iso_datetime, to_iso, utc_month


class TestParseIsoDatetime(unittest.TestCase):
    def test_date_only(self):
        self.assertEqual(parse_iso_datetime("1988-06-04"), datetime(1988, 6, 4))
        self.assertEqual(parse_iso_datetime(" 1988-6-4 "), datetime(1988, 6, 4))

    def test_zulu_and_offsets_normalise_to_naive_utc(self):
        self.assertEqual(parse_iso_datetime("1988-06-04T10:00:00Z"), datetime(1988, 6, 4, 10, 0))
        self.assertEqual(parse_iso_datetime("1988-06-04T10:00:00+02:00"), datetime(1988, 6, 4, 8, 0))
        self.assertEqual(parse_iso_datetime("1989-12-31T23:30:00-01:00"), datetime(1990, 1, 1, 0, 30))
        self.assertEqual(parse_iso_datetime("1988-06-04T10:00:00.123Z"), datetime(1988, 6, 4, 10, 0, 0, 123000))

    def test_invalid(self):
        for raw in ("", "   ", "yesterday", "1988-13-01", "1988-02-30", None, 19880604):
            with self.assertRaises(ValueError, msg=repr(raw)):
                parse_iso_datetime(raw)


class TestFormatting(unittest.TestCase):
    def test_to_iso(self):
        self.assertEqual(to_iso(datetime(1988, 6, 4)), "1988-06-04T00:00:00.000Z")
        self.assertEqual(to_iso(datetime(1988, 6, 4, 1, 2, 3, 456789)), "1988-06-04T01:02:03.456Z")
        self.assertIsNone(to_iso(None))


class TestDeathDateRange(unittest.TestCase):
    def test_year(self):
        self.assertEqual(death_date_range(1989), (datetime(1989, 1, 1), datetime(1990, 1, 1)))

    def test_month(self):
        self.assertEqual(death_date_range(1989, 6), (datetime(1989, 6, 1), datetime(1989, 7, 1)))

    def test_december_rolls_over(self):
        self.assertEqual(death_date_range(1989, 12), (datetime(1989, 12, 1), datetime(1990, 1, 1)))


class TestUtcMonth(unittest.TestCase):
    def test_naive_and_aware(self):
        self.assertEqual(utc_month(datetime(1989, 6, 30, 23)), 6)
        aware = datetime(1989, 7, 1, 1, tzinfo=timezone(timedelta(hours=3)))
        self.assertEqual(utc_month(aware), 6)
        self.assertIsNone(utc_month(None))
