"""Account address helpers for flow-deployments library."""

ADDRESS_LENGTH = 8  # bytes


def normalize_address(address: str) -> str:
    """
    Convert an account address to canonical form.

    Accepts addresses with or without the 0x prefix and with leading
    zeros stripped.

    Args:
        address: Account address, e.g. "f8d6e0586b0a20c7" or "0x01"

    Returns:
        Lowercase, 0x-prefixed, zero-padded address (e.g. "0x0000000000000001")

    Raises:
        ValueError: If address is not valid hex or is too long
    """
    raw = address.strip().lower()
    if raw.startswith("0x"):
        raw = raw[2:]

    if not raw or len(raw) > ADDRESS_LENGTH * 2:
        raise ValueError(f"invalid account address: {address!r}")
    try:
        int(raw, 16)
    except ValueError:
        raise ValueError(f"invalid account address: {address!r}") from None

    return "0x" + raw.rjust(ADDRESS_LENGTH * 2, "0")


def addresses_equal(a: str, b: str) -> bool:
    """Exact address equality after normalization."""
    return normalize_address(a) == normalize_address(b)
