from lxml import etree


def xmlstring(root):
    if isinstance(root, str):
        return root
    if isinstance(root, bytes):
        return root.decode("utf-8", errors="replace")
    if hasattr(root, "xmlelement"):
        root = root.xmlelement()
    try:
        return etree.tostring(root, pretty_print=True).decode("utf-8")
    except TypeError:
        return str(root)


def dump_communication(log, request, response) -> None:
    """
    Log a full request/response exchange, headers and bodies included.
    Credentials are masked.
    """
    headers = {
        k: ("***" if k.lower() == "authorization" else v)
        for k, v in request.headers.items()
    }
    log.debug(
        "====>\n%s %s\n%s\n\n%s\n<====\n%s %s\n%s\n\n%s",
        request.method.value,
        request.url,
        "\n".join("%s: %s" % h for h in headers.items()),
        xmlstring(request.body or b""),
        response.status,
        response.reason,
        "\n".join("%s: %s" % h for h in response.headers.items()),
        xmlstring(response.body or b""),
    )
