from bs4 import BeautifulSoup


def tag_texts(html: str, tag: str) -> list[str]:
    """Stripped text of every `tag` element in a page snapshot, in document order.

    Only used to describe what the page offered when a lookup fails.
    <noscript> bodies are skipped, the browser runs with scripts enabled.
    """
    soup = BeautifulSoup(html, 'html.parser')
    for noscript in soup.find_all('noscript'):
        noscript.decompose()
    return [elem.get_text(" ", strip=True) for elem in soup.find_all(tag)]
