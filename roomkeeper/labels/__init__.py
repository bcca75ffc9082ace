"""Container label codec."""

from roomkeeper.labels.codec import LabelCodec
from roomkeeper.labels.keys import LabelKeys, check_label_key

__all__ = ["LabelCodec", "LabelKeys", "check_label_key"]
