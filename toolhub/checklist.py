"""
Release Checklist Generator

Builds the release checklist table placed on Confluence release pages. The
same row template is rendered either as an Atlassian Document Format (ADF)
tree for the cloud editor or as storage-format HTML.
"""
import html
import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Tuple

logger = logging.getLogger(__name__)

CHECKBOX = 'checkbox'
EMPTY = 'empty'

COLUMN_WIDTHS = [60, 400, 100, 100, 100, 240]
HEADERS = [
    "Step",
    "Task",
    "QA1",
    "QA2",
    "Dev",
    "Confirmed by SM/QA Manager that the checklist is completed @Thanh Ngo/ @Bao Ho",
]

INSTRUCTIONS = [
    "✅ Check off each completed step by clicking the checkbox",
    "⭕ Gray cells with \"-\" indicate no action needed for that role",
    "🎯 All steps must be completed before release",
]

EMPTY_CELL_BACKGROUND = '#f5f5f5'
EMPTY_CELL_TEXT_COLOR = '#999999'
TABLE_WIDTH = 1200

HTML_CELL_STYLE = 'border: 1px solid #ddd; padding: 8px;'
HTML_HEADER_STYLE = HTML_CELL_STYLE + ' background-color: #f2f2f2; font-weight: bold;'
HTML_EMPTY_STYLE = HTML_CELL_STYLE + f' background-color: {EMPTY_CELL_BACKGROUND}; color: {EMPTY_CELL_TEXT_COLOR};'

QA_MONITORING_TASK = (
    "QA comment to the release channel if it needs to monitor the card after the release.\n"
    "QA comment on Jira card if it needs to monitor after release"
)
SIDE_EFFECT_TASK = (
    "Define the side affect OR the important cards of the previous release to re-test for the current release.\n"
    " - Dev need to write/comment the side effect to the related card (if available)"
)


@dataclass(frozen=True)
class ChecklistRow:
    """One checklist step; role cells are ``checkbox``, ``empty`` or free text"""
    step: str
    task: str
    qa1: str
    qa2: str
    dev: str
    sm: str = ''

    @property
    def role_cells(self) -> Tuple[str, str, str, str]:
        return self.qa1, self.qa2, self.dev, self.sm


def _row(step: str, task: str, qa1: str, qa2: str, dev: str, sm: str = '') -> ChecklistRow:
    return ChecklistRow(step, task, qa1, qa2, dev, sm)


E, C = EMPTY, CHECKBOX

_SHARED_OPENING_ROWS = [
    _row("1", "Finish all the bugs/tasks of version on develop branch", E, E, C, C),
    _row("2", "All the cards are moved to \"QA Success\"", C, E, E),
    _row("3", "Create release branch from develop branch", E, E, C),
    _row("4", "Prepare the Staging environment", E, E, C),
    _row("5", "Submit the release request on the release channel", E, E, C),
    _row("6", "Deploy the build to the Staging", E, E, C),
    _row("7", SIDE_EFFECT_TASK, C, E, C),
]

_SHARED_STAGING_ROWS = [
    _row("9", "The QA team create the Release checklist and reply to the channel to handle the release", C, E, E),
    _row("10", "The QA team create the Regression checklist for the release", C, E, E),
    _row("11", "Run the regression test on the Staging and finish the Regression checklist", C, C, E),
    _row("12", "Report the Staging regression test status to the release channel", C, C, E),
    _row("13", "The QA team confirm with the Manager to approve the release request", C, E, E),
    _row("14", "Compare code on the Staging branch with the Release branch before releasing to Production", E, E, C),
    _row("15", "Prepare the Production environment", E, E, C),
]

API_ROWS: List[ChecklistRow] = _SHARED_OPENING_ROWS + [
    _row("8", "Check if Data Migration is needed, then create an API Data Migration regression checklist.", C, E, C),
] + _SHARED_STAGING_ROWS + [
    _row("16", "Merge the code from release branch back to master branch", E, E, C),
    _row("17", "Release the build to the Production", E, E, C),
    _row("18", "Release the build on Jira", C, E, E),
    _row("19", "Release git", E, E, C),
    _row("20", "Smoke test on the Production", C, E, E),
    _row("21", "QA needs to double check on the Production to make sure the data is correctly migrated", C, C, E),
    _row("22", "Report smoke test status to the release channel", C, E, E),
    _row("23", QA_MONITORING_TASK, C, C, E),
    _row("24", "Merge the code from master branch to dev branch", E, E, C),
]

WEB_ROWS: List[ChecklistRow] = _SHARED_OPENING_ROWS + [
    _row("8", "Confirm with the API team for the API needed on the Staging", C, E, C),
] + _SHARED_STAGING_ROWS + [
    _row("15.1", "Ask Dev for any additional configurations before processing release", C, E, E),
    _row("15.2", "Prepare configuration for Kong Production and notify QA of any additional configurations", E, E, C),
    _row("16", "Merge the code from release branch back to master branch", E, E, C),
    _row("17", "Release to the Production", E, E, C),
    _row("18", "Release the build on Jira", C, E, E),
    _row("19", "Release git", E, E, C),
    _row("20", "Smoke test on the Production", C, E, E),
    _row("21", "Report smoke test status to the release channel", C, E, E),
    _row("22", QA_MONITORING_TASK, C, C, E),
    _row("23", "Merge the code from master branch to internal debug", E, E, C),
]


def is_api_release(release_name: str) -> bool:
    """A release whose name mentions "api" (any case) uses the API template"""
    return bool(release_name) and 'api' in release_name.lower()


# ==================== ADF nodes ====================

def _text(text: str, marks: List[Dict[str, Any]] = None) -> Dict[str, Any]:
    node = {"type": "text", "text": text}
    if marks:
        node["marks"] = marks
    return node


def _paragraph(*nodes: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "paragraph", "content": list(nodes)}


def _header_cell(text: str, width: int) -> Dict[str, Any]:
    return {
        "type": "tableHeader",
        "attrs": {"colwidth": [width]},
        "content": [_paragraph(_text(text, [{"type": "strong"}]))]
    }


def _text_cell(text: str, width: int) -> Dict[str, Any]:
    # ADF rejects empty text nodes
    paragraph = _paragraph(_text(text)) if text else _paragraph()
    return {
        "type": "tableCell",
        "attrs": {"colwidth": [width]},
        "content": [paragraph]
    }


def _empty_cell(width: int) -> Dict[str, Any]:
    return {
        "type": "tableCell",
        "attrs": {"background": EMPTY_CELL_BACKGROUND, "colwidth": [width]},
        "content": [_paragraph(_text("-", [{"type": "textColor", "attrs": {"color": EMPTY_CELL_TEXT_COLOR}}]))]
    }


def _checkbox_cell(task_id: int, width: int) -> Dict[str, Any]:
    return {
        "type": "tableCell",
        "attrs": {"colwidth": [width]},
        "content": [{
            "type": "taskList",
            "attrs": {"localId": f"task-list-{task_id}"},
            "content": [{
                "type": "taskItem",
                "attrs": {"localId": str(task_id), "state": "TODO"},
                "content": [_text("Done")]
            }]
        }]
    }


# ==================== HTML cells ====================

def _html_text_cell(text: str) -> str:
    return f'<td style="{HTML_CELL_STYLE}">{html.escape(text).replace(chr(10), "<br/>")}</td>'


def _html_empty_cell() -> str:
    return f'<td style="{HTML_EMPTY_STYLE}">-</td>'


def _html_checkbox_cell(task_id: int) -> str:
    return (
        f'<td style="{HTML_CELL_STYLE}">'
        '<ac:task-list><ac:task>'
        f'<ac:task-id>{task_id}</ac:task-id>'
        '<ac:task-status>incomplete</ac:task-status>'
        '<ac:task-body>Done</ac:task-body>'
        '</ac:task></ac:task-list></td>'
    )


class ChecklistDocument:
    """Checklist for one release, renderable as ADF or storage HTML"""

    def __init__(self, release_name: str = ''):
        self.release_name = release_name or ''
        self.is_api_release = is_api_release(self.release_name)
        self.rows: List[ChecklistRow] = list(API_ROWS if self.is_api_release else WEB_ROWS)
        logger.debug(
            f"Checklist for '{self.release_name}': {'API' if self.is_api_release else 'Web'} template, "
            f"{len(self.rows)} steps"
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def step_count(self) -> int:
        """Numbered steps; sub-steps such as "15.1" are not counted"""
        return sum(1 for row in self.rows if row.step.isdigit())

    @property
    def checkbox_count(self) -> int:
        return sum(1 for row in self.rows for cell in row.role_cells if cell == CHECKBOX)

    @property
    def template_name(self) -> str:
        return 'API' if self.is_api_release else 'Web'

    def to_adf(self) -> Dict[str, Any]:
        """
        Render the checklist as an ADF document.

        Checkbox ids start at 1 and increase in table order, row by row and
        left to right.
        """
        task_id = 1
        table_rows = [{
            "type": "tableRow",
            "content": [_header_cell(text, width) for text, width in zip(HEADERS, COLUMN_WIDTHS)]
        }]

        for row in self.rows:
            cells = [
                _text_cell(row.step, COLUMN_WIDTHS[0]),
                _text_cell(row.task, COLUMN_WIDTHS[1]),
            ]
            for kind, width in zip(row.role_cells, COLUMN_WIDTHS[2:]):
                if kind == CHECKBOX:
                    cells.append(_checkbox_cell(task_id, width))
                    task_id += 1
                elif kind == EMPTY:
                    cells.append(_empty_cell(width))
                else:
                    cells.append(_text_cell(kind, width))
            table_rows.append({"type": "tableRow", "content": cells})

        return {
            "version": 1,
            "type": "doc",
            "content": [
                _paragraph(_text("Instructions:", [{"type": "strong"}])),
                {
                    "type": "bulletList",
                    "content": [
                        {"type": "listItem", "content": [_paragraph(_text(item))]}
                        for item in INSTRUCTIONS
                    ]
                },
                {
                    "type": "table",
                    "attrs": {"isNumberColumnEnabled": False, "layout": "default", "width": TABLE_WIDTH},
                    "content": table_rows
                },
                {"type": "rule"}
            ]
        }

    def to_html(self) -> str:
        """Render the checklist as Confluence storage-format HTML"""
        task_id = 1
        parts = [
            '<p><strong>Instructions:</strong></p>',
            '<ul>',
            *[f'<li>{html.escape(item, quote=False)}</li>' for item in INSTRUCTIONS],
            '</ul>',
            '<table style="border-collapse: collapse; width: 100%;">',
            '<thead>',
            '<tr>',
            *[f'<th style="{HTML_HEADER_STYLE}">{html.escape(text)}</th>' for text in HEADERS],
            '</tr>',
            '</thead>',
            '<tbody>',
        ]

        for row in self.rows:
            cells = [_html_text_cell(row.step), _html_text_cell(row.task)]
            for kind in row.role_cells:
                if kind == CHECKBOX:
                    cells.append(_html_checkbox_cell(task_id))
                    task_id += 1
                elif kind == EMPTY:
                    cells.append(_html_empty_cell())
                else:
                    cells.append(_html_text_cell(kind))
            parts.append('<tr>' + ''.join(cells) + '</tr>')

        parts.extend(['</tbody>', '</table>'])
        return '\n'.join(parts)

    def summary(self) -> Dict[str, Any]:
        """Counters shown by the checklist preview"""
        return {
            'releaseName': self.release_name,
            'template': self.template_name,
            'stepCount': self.step_count,
            'rowCount': self.row_count,
            'checkboxCount': self.checkbox_count,
        }
