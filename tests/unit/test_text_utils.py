"""
Unit tests for product name helpers.

Run: pytest tests/unit/test_text_utils.py -v
"""

from utils.text_utils import clean_name, german_sort_key, name_key


class TestCleanName:
    """Tests for clean_name()"""

    def test_collapses_whitespace(self):
        assert clean_name("  Äpfel   rot ") == "Äpfel rot"

    def test_empty_returns_none(self):
        assert clean_name("   ") is None
        assert clean_name(None) is None


class TestNameKey:
    """Tests for name_key()"""

    def test_case_insensitive(self):
        assert name_key("ÄPFEL Rot") == name_key("äpfel  rot")

    def test_accents_kept(self):
        """Should keep accented and plain spellings apart."""
        assert name_key("Pâte") != name_key("Pate")


class TestGermanSortKey:
    """Tests for german_sort_key()"""

    def test_umlaut_sorts_with_base_letter(self):
        names = ["Zucchini", "Äpfel", "Birnen", "Aprikosen"]

        assert sorted(names, key=german_sort_key) == ["Äpfel", "Aprikosen", "Birnen", "Zucchini"]

    def test_eszett_sorts_as_ss(self):
        assert german_sort_key("Süßkartoffel")[0] == german_sort_key("Süsskartoffel")[0]

    def test_empty_name(self):
        assert german_sort_key(None) == ("", "", "")
