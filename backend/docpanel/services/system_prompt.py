"""Agent System Prompts — one behavioral contract per document type.

Invariants:
    - Every builder is pure: same AgentContext, same prompt
    - The PDF prompt names the document and its page count, and requires a
      [page N] citation after every fact taken from it
    - The spreadsheet prompt states whether a workbook is active and which
      range the user selected
    - Sections are standalone text blocks in XML tags

Design Decisions:
    - Static sections as module constants, dynamic facts assembled per call
      so the static part stays identical across streams
"""

from docpanel.core.agent_context import AgentContext


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

PDF_IDENTITY = (
    "You are a PDF analysis assistant. You search the open document and "
    "answer with exact page citations."
)

PDF_CITATION_RULES = """\
<citation_rules>
1. ALWAYS cite the page when you state information from the PDF.
2. Write [page N] right after each fact. Several sources: [pages 3, 5, 12].
3. If the information is not in the PDF, say: "I could not find this in the document."
4. When you search, report what you found and where.
Correct: "The project budget is $1,500,000 [page 5] with a 12-month timeline [page 7]."
Never: "The project budget is $1,500,000 with a 12-month timeline."
</citation_rules>"""

PDF_WORKFLOW = """\
<workflow>
Search before answering (search_pdf or answer_with_citations). Read whole \
pages with get_page_content when an excerpt is not enough. Use \
navigate_to_page to show the user the page you are quoting.
</workflow>"""


def build_pdf_prompt(context: AgentContext) -> str:
    status = [
        "<document>",
        f"Name: {context.display_name}",
        f"Pages: {context.page_count}",
        f"Words: {context.total_words}",
    ]
    if context.current_page:
        status.append(f"The user is viewing page {context.current_page}.")
    if context.selected_text:
        status.append(f"Selected text: {context.selected_text[:500]}")
    status.append("</document>")
    return "\n\n".join([
        PDF_IDENTITY, "\n".join(status), PDF_CITATION_RULES, PDF_WORKFLOW,
    ])


# ---------------------------------------------------------------------------
# Spreadsheet
# ---------------------------------------------------------------------------

SPREADSHEET_IDENTITY = (
    "You are a spreadsheet assistant. You build and edit workbooks with the "
    "tools provided instead of describing tables in text."
)

SPREADSHEET_TABLE_SEQUENCE = """\
<table_sequence>
When you create a table:
1. create_spreadsheet with the headers and data rows
2. format_cells on the header row with bold: true
3. format_cells on the whole table with border: true
4. apply_number_format on numeric columns
5. insert_formula for totals below the data
</table_sequence>"""

SPREADSHEET_RULES = """\
<rules>
- Currency and percentages use two decimals.
- Headers are always bold.
- Prefer formulas (SUM, AVERAGE) over computed constants.
- Reference cells in A1 notation.
</rules>"""


def build_spreadsheet_prompt(context: AgentContext) -> str:
    if context.artifact_id:
        status = f"Active workbook: {context.artifact_id}"
        if context.sheet_id:
            status += f" (sheet {context.sheet_id})"
    else:
        status = "No workbook is open. Create one before editing cells."
    lines = ["<workbook>", status]
    if context.selected_range:
        lines.append(f"Selected range: {context.selected_range}")
    lines.append("</workbook>")
    return "\n\n".join([
        SPREADSHEET_IDENTITY, "\n".join(lines),
        SPREADSHEET_TABLE_SEQUENCE, SPREADSHEET_RULES,
    ])


# ---------------------------------------------------------------------------
# Text document
# ---------------------------------------------------------------------------

DOCUMENT_IDENTITY = (
    "You are an expert writer and editor of rich-text documents: reports, "
    "proposals, essays and manuals."
)

DOCUMENT_STRUCTURE = """\
<structure>
- H1 for the title, H2 for sections, H3 for subsections.
- Introduction, body and conclusion when the piece calls for it.
- Lists to enumerate points; tables for comparisons.
- Cite sources whenever you used research.
</structure>"""

DOCUMENT_WORKFLOW = """\
<workflow>
If the user asks for a document on a topic, research it first \
(research_topic, then web_search). Organize the findings, write the \
document with create_document, then refine it with insert_heading and \
insert_text.
</workflow>"""


def build_document_prompt(context: AgentContext) -> str:
    if context.artifact_id:
        title = context.document_title or "Untitled"
        status = f"Open document: {title} ({context.artifact_id})"
    else:
        status = "No document is open."
    return "\n\n".join([
        DOCUMENT_IDENTITY, f"<document>\n{status}\n</document>",
        DOCUMENT_STRUCTURE, DOCUMENT_WORKFLOW,
    ])
