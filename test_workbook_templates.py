from link_processor import LinkProcessor
from workbook_reader import ZIP_SIGNATURE
from workbook_templates import (
    EXTRACTION_CAPTION,
    MERGE_CAPTION,
    extraction_template,
    merge_template,
)


class TestExtractionTemplate:
    """
    Tests for the link extraction sample workbook.
    """

    def test_layout(self, open_output):
        """
        Test headers, linked samples, caption and widths.

        Args:
            open_output: Fixture loading a package back with openpyxl
        """
        content = extraction_template()
        sheet = open_output(content)

        assert content.startswith(ZIP_SIGNATURE)
        assert sheet.title == "Data"
        assert (sheet["A1"].value, sheet["B1"].value) == ("Title", "URL")
        assert sheet["A1"].fill.fgColor.rgb == "FFD9EAF7"
        assert sheet["A2"].value == "Example Link 1"
        assert sheet["A2"].hyperlink.target == "https://www.example.com"
        assert sheet["A3"].hyperlink.target == "https://www.google.com"
        assert sheet["A4"].value is None
        assert sheet["A5"].value == EXTRACTION_CAPTION
        assert sheet["A5"].font.color.rgb == "FF888888"
        assert sheet.column_dimensions["A"].width == 30
        assert sheet.column_dimensions["B"].width == 50

    def test_is_byte_identical_across_calls(self):
        assert extraction_template() == extraction_template()

    def test_round_trip_through_extract(self):
        """
        Test extracting links from the template.

        Both sample links are found; the caption row has text, so it is kept
        alongside the two sample rows.
        """
        result = LinkProcessor.extract_links(extraction_template(), "Title")

        assert result.is_success()
        assert result.links_found == 2
        assert result.total_rows == 3
        assert [link.url for link in result.links] == ["https://www.example.com", "https://www.google.com"]


class TestMergeTemplate:
    """
    Tests for the Title/URL merge sample workbook.
    """

    def test_layout(self, open_output):
        sheet = open_output(merge_template())

        assert sheet.title == "Data"
        assert sheet["B1"].fill.fgColor.rgb == "FFD9F7E8"
        assert [sheet.cell(row=row, column=1).value for row in (2, 3, 4)] == ["Google", "GitHub", "Stack Overflow"]
        assert sheet["B3"].value == "https://github.com"
        assert all(sheet.cell(row=row, column=1).hyperlink is None for row in (2, 3, 4))
        assert sheet["A6"].value == MERGE_CAPTION

    def test_is_byte_identical_across_calls(self):
        assert merge_template() == merge_template()

    def test_round_trip_through_merge(self):
        """
        Test merging the template.

        The three sample URLs become hyperlinks; the caption row has a title
        and no URL, so it is kept as plain text.
        """
        result = LinkProcessor.merge_links(merge_template())

        assert result.is_success()
        assert result.links_created == 3
        assert result.total_rows == 4
        assert [link.row for link in result.links] == [2, 3, 4]
        assert result.links[1].url == "https://github.com/"
