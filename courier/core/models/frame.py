from typing import NotRequired, TypedDict


class EncodedFrame(TypedDict):
    """
    Wire representation of one envelope, as handed to a transport.
    """
    body: str
    """
    Text payload. Always valid Unicode without control characters.
    """

    headers: NotRequired[dict[str, str]]
    """
    Side-channel flags. Empty unless the body went through the
    transport-safety transform.
    """
