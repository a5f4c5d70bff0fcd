"""
Markup-to-text conversion

radiko embeds HTML fragments (escaped) inside the `info` and `desc` elements of
its schedule XML. The fragments are not standalone documents, so they are wrapped
in a synthetic <body> element, parsed with lxml's HTML parser, and rendered to
a small markdown-like dialect:

    <a href="u">t</a>      -> [t](u)
    <b>x</b>, <strong>x</strong> -> **x**
    <p>x</p>               -> x\\n
    <br>rest               -> \\n\\nrest
    any other tag          -> its rendered children

Comments are dropped. Node kinds the renderer does not know are dropped with a
warning; conversion never fails.
"""
import logging

from lxml import etree # type: ignore


logger = logging.getLogger(__name__)

FRAGMENT_ROOT_TAG = "body"


def wrap_fragment(fragment: str) -> str:
    """Wrap a markup fragment in the synthetic root element."""
    return f"<{FRAGMENT_ROOT_TAG}>{fragment}</{FRAGMENT_ROOT_TAG}>"


def parse_fragment(fragment: str) -> etree._Element | None:
    """
    Parse a markup fragment into an element tree

    Args:
        fragment: Raw markup snippet (not wrapped)

    Returns:
        The synthetic <body> element, or None if nothing parsable remains

    Raises:
        etree.XMLSyntaxError: If the parser gives up on the input
    """
    # Parser instances are not shared between executor threads
    parser = etree.HTMLParser(encoding="utf-8")
    document = etree.fromstring(wrap_fragment(fragment).encode("utf-8"), parser)
    if document is None:
        return None
    if document.tag == FRAGMENT_ROOT_TAG:
        return document
    return document.find(FRAGMENT_ROOT_TAG)


def node_to_markdown(node: etree._Element | etree._ElementTree) -> str:
    """
    Render a parsed markup tree as markdown-like text

    Args:
        node: A document (ElementTree) or any node inside one

    Returns:
        Rendered text; children are concatenated in document order
    """
    if isinstance(node, etree._ElementTree):
        root = node.getroot()
        if root is None:
            return ""
        top_level = list(reversed(list(root.itersiblings(preceding=True))))
        top_level.append(root)
        top_level.extend(root.itersiblings())
        return "".join(node_to_markdown(child) for child in top_level)

    if node.tag is etree.Comment:
        return ""

    if not isinstance(node.tag, str):
        logger.warning("Unexpected markup node dropped: %r", node)
        return ""

    tag = etree.QName(node).localname.lower()
    children = _render_children(node)

    if tag == "a":
        href = _first_href(node)
        if href is None:
            return children
        return f"[{children}]({href})"
    if tag in ("b", "strong"):
        return f"**{children}**"
    if tag == "p":
        return f"{children}\n"
    if tag == "br":
        return f"\n\n{children}"
    return children


def _render_children(element: etree._Element) -> str:
    """Render the text content and child nodes of an element."""
    parts = [element.text or ""]
    for child in element:
        parts.append(node_to_markdown(child))
        # Tail text belongs to the parent, whatever kind of node it follows
        parts.append(child.tail or "")
    return "".join(parts)


def _first_href(element: etree._Element) -> str | None:
    for name, value in element.attrib.items():
        if etree.QName(name).localname == "href":
            return value
    return None


def markup_to_text(fragment: str) -> str:
    """
    Convert a raw markup fragment to markdown-like text

    Args:
        fragment: Markup snippet as found in the schedule feed

    Returns:
        Converted text. A fragment the parser cannot read at all is returned
        unchanged.
    """
    try:
        root = parse_fragment(fragment)
    except etree.XMLSyntaxError as exc:
        logger.warning("Could not parse markup fragment, keeping raw text: %s", exc)
        return fragment

    if root is None:
        logger.warning("Markup fragment produced no document, keeping raw text")
        return fragment

    return node_to_markdown(root)
