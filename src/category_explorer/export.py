"""Encode an exported article set as delimited text."""

import csv
import io
from collections.abc import Iterable
from enum import StrEnum

from category_explorer.models.node import Article


class ExportFormat(StrEnum):
    CSV = "csv"
    TXT = "txt"
    WIKICODE = "wikicode"


def to_csv(articles: Iterable[Article], *, header: bool = False) -> str:
    """One fully quoted ``id,title`` row per article."""
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    if header:
        writer.writerow(["id", "title"])
    for article in articles:
        writer.writerow([article.id, article.title])
    return out.getvalue()


def to_txt(articles: Iterable[Article]) -> str:
    """One title per line."""
    return "".join(f"{article.title}\n" for article in articles)


def _escape_wiki_title(title: str) -> str:
    return title.replace("|", "&#124;")


def to_wikicode(articles: Iterable[Article]) -> str:
    """A bulleted list of wiki links, one line each."""
    return "".join(f"* [[{_escape_wiki_title(a.title)}]]\n" for a in articles)


def encode(articles: Iterable[Article], fmt: ExportFormat | str) -> str:
    try:
        fmt = ExportFormat(fmt)
    except ValueError:
        msg = f"Unknown export format: {fmt!r}"
        raise ValueError(msg) from None

    if fmt is ExportFormat.CSV:
        return to_csv(articles)
    if fmt is ExportFormat.TXT:
        return to_txt(articles)
    return to_wikicode(articles)
