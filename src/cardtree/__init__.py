"""cardtree - Typed traversal of rich message cards for Python 3.12+."""

from cardtree.activity import (
    ActionTypes,
    AnimationCard,
    Attachment,
    AudioCard,
    CardAction,
    ContentTypes,
    HeroCard,
    MessageActivity,
    OAuthCard,
    ReceiptCard,
    SigninCard,
    ThumbnailCard,
    VideoCard,
)
from cardtree.dataids import (
    DataIdOptions,
    DataIdTypes,
    DataItem,
    apply_ids_to_action_data,
    generate_id,
    get_id_from_action_data,
)
from cardtree.errors import (
    CardTreeError,
    ConversionError,
    NodeArgumentError,
    NodeResolutionError,
)
from cardtree.nodes import (
    CARD_TYPES,
    TREE,
    NodeKind,
    TreeNode,
)
from cardtree.resolve import get_node
from cardtree.serialization import (
    from_dict,
    round_trip,
    to_dict,
)
from cardtree.tree import (
    # Traversal
    apply_ids,
    get_ids,
    recurse,
)

__all__ = [
    "CARD_TYPES",
    "TREE",
    "ActionTypes",
    "AnimationCard",
    "Attachment",
    "AudioCard",
    "CardAction",
    "CardTreeError",
    "ContentTypes",
    "ConversionError",
    # Data IDs
    "DataIdOptions",
    "DataIdTypes",
    "DataItem",
    "HeroCard",
    "MessageActivity",
    "NodeArgumentError",
    # Nodes
    "NodeKind",
    "NodeResolutionError",
    "OAuthCard",
    "ReceiptCard",
    "SigninCard",
    "ThumbnailCard",
    "TreeNode",
    "VideoCard",
    "apply_ids",
    "apply_ids_to_action_data",
    "from_dict",
    "generate_id",
    "get_id_from_action_data",
    "get_ids",
    "get_node",
    "recurse",
    "round_trip",
    "to_dict",
]
