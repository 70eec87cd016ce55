"""Domain name utilities."""


def normalize_domain(domain: str) -> str:
    """Strip a single trailing root-label dot from a query name.

    No case folding or other normalization is applied; cache and database
    keys use the name exactly as queried.

    Args:
        domain: Query name, usually fully qualified.

    Returns:
        str: Name without its trailing dot.

    Examples:
        >>> normalize_domain("example.com.")
        'example.com'
        >>> normalize_domain("Example.COM")
        'Example.COM'
        >>> normalize_domain("example.com..")
        'example.com.'
    """
    if domain.endswith("."):
        return domain[:-1]
    return domain
