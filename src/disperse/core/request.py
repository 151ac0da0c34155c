"""
Transfer Request model.

Represents a single value transfer and the two input modes that describe
a list of them: an explicit transfer list, or a recipient list sharing one
fixed amount.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from disperse.core.errors import ConfigurationError

MAX_AMOUNT = 2 ** 64 - 1


def _check_amount(amount: Any) -> int:
    """Validate an amount in the smallest indivisible unit."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ConfigurationError(f"amount must be an integer, got {amount!r}")
    if amount < 0 or amount > MAX_AMOUNT:
        raise ConfigurationError(f"amount out of range: {amount}")
    return amount


@dataclass(frozen=True)
class TransferRequest:
    """
    A single transfer to one recipient.

    Attributes:
        recipient: Recipient address, passed through to the ledger client unchecked
        amount: Amount in the smallest unit (lovelace or raw token units)
    """

    recipient: str
    amount: int

    def __post_init__(self):
        _check_amount(self.amount)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"recipient": self.recipient, "amount": self.amount}


@dataclass(frozen=True)
class ByTransferList:
    """Input mode: explicit (recipient, amount) pairs."""

    transfers: Tuple[TransferRequest, ...]


@dataclass(frozen=True)
class ByRecipientsAndFixedAmount:
    """Input mode: every recipient receives the same amount."""

    recipients: Tuple[str, ...]
    fixed_amount: int

    def __post_init__(self):
        _check_amount(self.fixed_amount)


TransferSpec = Union[ByTransferList, ByRecipientsAndFixedAmount]

TransferLike = Union[TransferRequest, Mapping[str, Any], Sequence[Any]]


def _coerce_transfer(item: TransferLike) -> TransferRequest:
    if isinstance(item, TransferRequest):
        return item
    if isinstance(item, Mapping):
        try:
            return TransferRequest(recipient=item["recipient"], amount=item["amount"])
        except KeyError as e:
            raise ConfigurationError(f"transfer entry missing {e.args[0]!r}") from e
    if isinstance(item, (list, tuple)) and len(item) == 2:
        return TransferRequest(recipient=item[0], amount=item[1])
    # Objects exposing recipient/amount attributes (e.g. pydantic models)
    if hasattr(item, "recipient") and hasattr(item, "amount"):
        return TransferRequest(recipient=item.recipient, amount=item.amount)
    raise ConfigurationError(f"unrecognized transfer entry: {item!r}")


def transfer_spec_from_config(
    transfers: Optional[Iterable[TransferLike]] = None,
    recipients: Optional[Iterable[str]] = None,
    fixed_amount: Optional[int] = None,
) -> TransferSpec:
    """
    Build the input-mode variant from a loose configuration.

    Args:
        transfers: Explicit transfer entries
        recipients: Recipient addresses (requires fixed_amount)
        fixed_amount: Amount sent to every recipient (requires recipients)

    Returns:
        ByTransferList or ByRecipientsAndFixedAmount

    Raises:
        ConfigurationError: If neither mode is satisfiable, or both are
    """
    has_fixed = recipients is not None and fixed_amount is not None

    if transfers is not None and has_fixed:
        raise ConfigurationError(
            "ambiguous transfer specification: both transfers and "
            "recipients + fixed_amount given"
        )

    if has_fixed:
        return ByRecipientsAndFixedAmount(
            recipients=tuple(recipients),
            fixed_amount=fixed_amount,
        )

    if transfers is not None:
        return ByTransferList(transfers=tuple(_coerce_transfer(t) for t in transfers))

    raise ConfigurationError("no valid transfer specification")


def normalize(spec: TransferSpec) -> List[TransferRequest]:
    """
    Produce the canonical ordered list of transfer requests.

    Order follows the input; duplicates are kept.
    """
    if isinstance(spec, ByTransferList):
        return list(spec.transfers)
    if isinstance(spec, ByRecipientsAndFixedAmount):
        return [
            TransferRequest(recipient=recipient, amount=spec.fixed_amount)
            for recipient in spec.recipients
        ]
    raise ConfigurationError("no valid transfer specification")


def recipients_of(spec: TransferSpec) -> List[str]:
    """Get the recipient list of a transfer specification, in input order."""
    if isinstance(spec, ByTransferList):
        return [t.recipient for t in spec.transfers]
    if isinstance(spec, ByRecipientsAndFixedAmount):
        return list(spec.recipients)
    raise ConfigurationError("no valid transfer specification")
