import string


#: The characters that are permitted in an origin pool name
PERMITTED_CHARS = frozenset(string.ascii_lowercase + string.digits + "-")

#: The maximum length of an origin pool name (a DNS-1035 label)
MAX_LENGTH = 63


def canonicalize(service_name: str) -> str:
    """
    Returns the origin pool name for the given service name.

    The result contains only lowercase letters, digits and hyphens, starts with a
    letter and does not end with a hyphen. If the service name contains no letters,
    the result is empty.
    """
    name = service_name.replace(".", "-").lower()
    # Discard everything before the first letter
    start = next(
        (i for i, char in enumerate(name) if char in string.ascii_lowercase),
        len(name)
    )
    name = "".join(char for char in name[start:] if char in PERMITTED_CHARS)
    return name[:MAX_LENGTH].rstrip("-")
