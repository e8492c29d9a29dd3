import pytest

from utils.cell_address import cell_reference, column_letter, split_reference


class TestCellReference:
    """
    Tests for column_letter, cell_reference and split_reference.
    """

    @pytest.mark.parametrize(
        "index, letters",
        [(1, "A"), (26, "Z"), (27, "AA"), (28, "AB"), (702, "ZZ"), (703, "AAA")],
    )
    def test_column_letter(self, index, letters):
        assert column_letter(index) == letters

    def test_cell_reference_builds_a1_address(self):
        assert cell_reference(7, 2) == "B7"
        assert cell_reference(1, 28) == "AB1"

    def test_cell_reference_rejects_row_zero(self):
        with pytest.raises(ValueError):
            cell_reference(0, 1)

    @pytest.mark.parametrize(
        "reference, expected",
        [("B7", (7, 2)), ("$B$7", (7, 2)), ("ab12", (12, 28)), (" C3 ", (3, 3)), ("XFD1", (1, 16384))],
        ids=["plain", "absolute", "lower-case", "padded", "last-column"]
    )
    def test_split_reference(self, reference, expected):
        """
        Test that references are parsed into (row, column).

        Args:
            reference: A1-style reference
            expected: (row, column) pair
        """
        assert split_reference(reference) == expected

    @pytest.mark.parametrize("reference", ["", "B", "7", "B0", "A1:B2", "ABCD1", "XFE1"])
    def test_split_reference_rejects_invalid(self, reference):
        with pytest.raises(ValueError):
            split_reference(reference)
