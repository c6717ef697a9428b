"""
Tests for the free-text ticket parser
"""
import pytest

from toolhub.ticket_parser import TicketTextParser, parse_ticket_text, UNTITLED


BUG_REPORT = """Bug: Login fails on iOS app
Steps:
1. Open the app
2. Enter valid credentials
3. Tap login button
4. Wait for response
Environment: iPhone 14, iOS 16.5, App version 2.3.1
Expected: User should be logged in and see dashboard
Actual: Error message "Network timeout" appears
Priority: High
This happens consistently"""

FEATURE_REQUEST = """Feature: Add dark mode to settings
Users want a dark theme for night usage.
Priority: Medium"""


class TestParseTicket:

    def test_bug_report(self):
        ticket = parse_ticket_text(BUG_REPORT)

        assert ticket.title == "Login fails on iOS app"
        assert ticket.issue_type == "Bug"
        assert ticket.priority == "High"
        assert ticket.steps == [
            "Open the app",
            "Enter valid credentials",
            "Tap login button",
            "Wait for response",
        ]
        assert ticket.environment == "iPhone 14, iOS 16.5, App version 2.3.1"
        assert ticket.expected_result == "User should be logged in and see dashboard"
        assert ticket.actual_result == 'Error message "Network timeout" appears'

    def test_description_keeps_unrecognized_text(self):
        ticket = parse_ticket_text(BUG_REPORT)

        assert "This happens consistently" in ticket.description
        assert "Network timeout" not in ticket.description
        assert "Open the app" not in ticket.description

    def test_feature_request(self):
        ticket = parse_ticket_text(FEATURE_REQUEST)

        assert ticket.title == "Add dark mode to settings"
        assert ticket.issue_type == "Story"
        assert ticket.priority == "Medium"
        assert ticket.steps == []

    @pytest.mark.parametrize("text", [None, "", "   \n  "])
    def test_blank_text(self, text):
        assert parse_ticket_text(text) is None

    def test_serializes_with_camel_case_aliases(self):
        data = parse_ticket_text(BUG_REPORT).model_dump(by_alias=True)

        assert data["issueType"] == "Bug"
        assert data["expectedResult"].startswith("User should")
        assert "definitionOfDone" in data


class TestExtractors:

    def test_title_falls_back_to_first_long_line(self):
        lines = ["Checkout total is wrong", "Priority: Low"]
        assert TicketTextParser.extract_title(lines) == "Checkout total is wrong"

    def test_title_skips_section_lines(self):
        lines = ["Steps: open the cart", "Cart badge overlaps icon"]
        assert TicketTextParser.extract_title(lines) == "Cart badge overlaps icon"

    def test_untitled_when_nothing_qualifies(self):
        assert TicketTextParser.extract_title(["bug", "oops"]) == UNTITLED

    @pytest.mark.parametrize("text,expected", [
        ("Payment page is broken", "Bug"),
        ("Enhancement for the search box", "Story"),
        ("Implement the export job", "Task"),
        ("Rename the settings tab", "Bug"),
    ])
    def test_issue_type(self, text, expected):
        assert TicketTextParser.extract_issue_type(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("This is a blocker for the release", "High"),
        ("Critical crash on start", "High"),
        ("Minor typo in footer", "Low"),
        ("Footer text misaligned", "Medium"),
    ])
    def test_priority(self, text, expected):
        assert TicketTextParser.extract_priority(text) == expected

    def test_steps_on_header_line(self):
        assert TicketTextParser.extract_steps("Steps: Open the cart\nExpected: total updates") == ["Open the cart"]

    def test_unnumbered_steps_inside_section(self):
        text = "Steps to reproduce:\nopen the cart\nremove an item\nExpected: total updates"
        assert TicketTextParser.extract_steps(text) == ["open the cart", "remove an item"]

    def test_environment_from_platform_hint(self):
        assert TicketTextParser.extract_environment("App crashes on Android 13") == "Android 13"

    def test_no_environment(self):
        assert TicketTextParser.extract_environment("Totals are wrong") == ""

    def test_definition_of_done_at_end_of_text(self):
        text = "Task: Update onboarding copy\nDefinition of Done:\n- Copy reviewed\n- Screens updated"
        assert TicketTextParser.extract_definition_of_done(text) == "- Copy reviewed\n- Screens updated"

    def test_definition_of_done_before_next_section(self):
        text = "Title: Export report\nAcceptance criteria: CSV file downloads\nEnvironment: Chrome 120"

        assert TicketTextParser.extract_definition_of_done(text) == "CSV file downloads"
        assert TicketTextParser.extract_environment(text) == "Chrome 120"

    def test_vietnamese_definition_of_done_header(self):
        text = "Tiêu đề\nĐiều kiện hoàn thành: Đã kiểm thử"
        assert TicketTextParser.extract_definition_of_done(text) == "Đã kiểm thử"
