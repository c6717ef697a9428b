"""
Free-text Ticket Parser

Turns a loosely formatted bug report or feature request into ticket fields
using keyword and section-header patterns.
"""
import re
import logging
from typing import List, Optional

from .models import TicketInput

logger = logging.getLogger(__name__)

UNTITLED = 'Untitled Ticket'

TITLE_PATTERN = re.compile(r'^(?:title|summary|bug|feature|task|story):\s*(.+)', re.IGNORECASE)
SECTION_LINE_PATTERN = re.compile(r'^(?:steps|environment|env|priority|expected|actual|reproduce):', re.IGNORECASE)

BUG_KEYWORDS = re.compile(r'\b(bug|defect|issue|problem|error|fail|broken)\b', re.IGNORECASE)
FEATURE_KEYWORDS = re.compile(r'\b(feature|enhancement|improvement|new|add)\b', re.IGNORECASE)
TASK_KEYWORDS = re.compile(r'\b(task|todo|work|implement)\b', re.IGNORECASE)

HIGH_PRIORITY = re.compile(r'\b(critical|urgent|blocker|high)\b', re.IGNORECASE)
LOW_PRIORITY = re.compile(r'\b(low|minor)\b', re.IGNORECASE)

STEPS_HEADER = re.compile(r'^(?:steps|reproduce|how to reproduce|steps to reproduce):\s*', re.IGNORECASE)
NUMBERED_STEP = re.compile(r'^\d+\.\s*(.+)')
NEW_SECTION = re.compile(
    r'^(?:environment|env|expected|actual|priority|description|notes?|definition of done|dod|acceptance criteria):',
    re.IGNORECASE
)

ENVIRONMENT_FIELD = re.compile(r'(?:environment|env|device|browser|platform|os|system):\s*([^\n]+)', re.IGNORECASE)
ENVIRONMENT_HINT = re.compile(r'(?:iphone|android|ios|windows|mac|chrome|safari|firefox)\s*[\w\s.]*', re.IGNORECASE)

EXPECTED_FIELD = re.compile(r'(?:expected|should|expected result):\s*([^\n]+)', re.IGNORECASE)
ACTUAL_FIELD = re.compile(r'(?:actual|actual result|what happens):\s*([^\n]+)', re.IGNORECASE)

# A block runs until the next known header line or the end of the text
_BLOCK_END = r'(?=\n(?:environment|expected|actual|priority)|\Z)'
DEFINITION_OF_DONE_FIELD = re.compile(
    r'(?:definition of done|dod|acceptance criteria|điều kiện hoàn thành|tiêu chí chấp nhận):\s*([\s\S]*?)' + _BLOCK_END,
    re.IGNORECASE
)
CHECKLIST_FIELD = re.compile(r'(?:checklist|requirements|criteria):\s*([\s\S]*?)' + _BLOCK_END, re.IGNORECASE)

STEPS_BLOCK = re.compile(
    r'(?:steps|reproduce|how to reproduce|steps to reproduce):[\s\S]*?(?=\n(?:environment|expected|actual)|\Z)',
    re.IGNORECASE
)
DESCRIPTION_STRIP_PATTERNS = [
    re.compile(r'(?:environment|env|device|browser|platform):\s*[^\n]+', re.IGNORECASE),
    re.compile(r'(?:expected|expected result):\s*[^\n]+', re.IGNORECASE),
    re.compile(r'(?:actual|actual result):\s*[^\n]+', re.IGNORECASE),
    re.compile(r'(?:priority):\s*[^\n]+', re.IGNORECASE),
    re.compile(
        r'(?:definition of done|dod|acceptance criteria|điều kiện hoàn thành|tiêu chí chấp nhận):[\s\S]*?' + _BLOCK_END,
        re.IGNORECASE
    ),
]


class TicketTextParser:
    """Regex-based extraction of ticket fields from free text"""

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional[TicketInput]:
        """
        Parse free text into a TicketInput

        Args:
            text: Raw report as typed or pasted by the user

        Returns:
            Parsed ticket, or None for blank input
        """
        if not text or not text.strip():
            return None

        lines = [line.strip() for line in text.split('\n')]
        lines = [line for line in lines if line]

        title = cls.extract_title(lines)
        ticket = TicketInput(
            title=title,
            issue_type=cls.extract_issue_type(text),
            priority=cls.extract_priority(text),
            steps=cls.extract_steps(text),
            environment=cls.extract_environment(text),
            expected_result=cls.extract_expected_result(text),
            actual_result=cls.extract_actual_result(text),
            definition_of_done=cls.extract_definition_of_done(text),
        )
        ticket.description = cls.extract_description(text, title)

        logger.debug(f"Parsed ticket '{ticket.title}' ({ticket.issue_type}, {ticket.priority}, {len(ticket.steps)} steps)")
        return ticket

    @staticmethod
    def extract_title(lines: List[str]) -> str:
        for line in lines:
            match = TITLE_PATTERN.match(line)
            if match:
                return match.group(1).strip()

        first_line = next(
            (line for line in lines if len(line) > 5 and not SECTION_LINE_PATTERN.match(line)),
            None
        )
        return first_line or UNTITLED

    @staticmethod
    def extract_issue_type(text: str) -> str:
        if BUG_KEYWORDS.search(text):
            return 'Bug'
        if FEATURE_KEYWORDS.search(text):
            return 'Story'
        if TASK_KEYWORDS.search(text):
            return 'Task'
        return 'Bug'

    @staticmethod
    def extract_priority(text: str) -> str:
        if HIGH_PRIORITY.search(text):
            return 'High'
        if LOW_PRIORITY.search(text):
            return 'Low'
        return 'Medium'

    @staticmethod
    def is_new_section(line: str) -> bool:
        return bool(NEW_SECTION.match(line))

    @classmethod
    def extract_steps(cls, text: str) -> List[str]:
        """Collect steps from a "Steps:" section and from numbered lines anywhere"""
        steps: List[str] = []
        in_steps_section = False

        for raw_line in text.split('\n'):
            line = raw_line.strip()

            header = STEPS_HEADER.match(line)
            if header:
                in_steps_section = True
                same_line = line[header.end():]
                if same_line:
                    steps.append(same_line)
                continue

            if not (in_steps_section or re.match(r'^\d+\.', line)):
                continue

            numbered = NUMBERED_STEP.match(line)
            if numbered:
                steps.append(numbered.group(1))
                continue

            if cls.is_new_section(line):
                in_steps_section = False
            elif in_steps_section and len(line) > 2:
                steps.append(line)

        return steps

    @staticmethod
    def extract_environment(text: str) -> str:
        match = ENVIRONMENT_FIELD.search(text)
        if match:
            return match.group(1).strip()

        hint = ENVIRONMENT_HINT.search(text)
        if hint:
            return hint.group(0).strip()
        return ''

    @staticmethod
    def extract_expected_result(text: str) -> str:
        match = EXPECTED_FIELD.search(text)
        return match.group(1).strip() if match else ''

    @staticmethod
    def extract_actual_result(text: str) -> str:
        match = ACTUAL_FIELD.search(text)
        return match.group(1).strip() if match else ''

    @staticmethod
    def extract_definition_of_done(text: str) -> str:
        for pattern in (DEFINITION_OF_DONE_FIELD, CHECKLIST_FIELD):
            match = pattern.search(text)
            if match:
                return match.group(1).strip()
        return ''

    @staticmethod
    def extract_description(text: str, title: str) -> str:
        """What remains of the text once the recognized sections are removed"""
        description = text
        if title and title != UNTITLED:
            description = re.sub(re.escape(title), '', description, count=1, flags=re.IGNORECASE)

        description = STEPS_BLOCK.sub('', description, count=1)
        for pattern in DESCRIPTION_STRIP_PATTERNS:
            description = pattern.sub('', description, count=1)

        return re.sub(r'\n\s*\n', '\n', description).strip()


def parse_ticket_text(text: Optional[str]) -> Optional[TicketInput]:
    """Parse free text into ticket fields (None for blank input)"""
    return TicketTextParser.parse(text)
