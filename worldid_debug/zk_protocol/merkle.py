"""
Merkle inclusion proofs as returned by the sequencer.

The sequencer answers ``inclusionProof`` with
``{"root": "0x..", "proof": [{"Left": "0x.."}, {"Right": "0x.."}, ...]}``.
The circuit wants two parallel lists instead: the sibling values and a
0/1 path index per level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

from .config import MAX_TREE_DEPTH, MIN_TREE_DEPTH, PATH_INDEX_BY_DIRECTION
from .encoding import parse_field_element
from .exceptions import HashingInputError, MalformedProofRecord


@dataclass(frozen=True)
class MerkleProof:
    siblings: Tuple[int, ...]
    path_indices: Tuple[int, ...]
    root: Optional[int] = None

    @property
    def depth(self) -> int:
        return len(self.siblings)

    def to_path(self) -> Iterator[Tuple[int, bool]]:
        """
        Yield ``(sibling, is_left)`` per level.

        ``is_left`` is True when the sibling sits on the left of the node.
        """
        for sibling, index in zip(self.siblings, self.path_indices):
            yield sibling, index == 1


def adapt_inclusion_proof(
    record: Iterable[Mapping[str, Any]],
    *,
    root: Any = None,
    depth: Optional[int] = None,
) -> MerkleProof:
    """
    Convert a sequencer inclusion record into the circuit's Merkle proof.

    Args:
        record: Sequence of single-key mappings, ``{"Left": v}`` or ``{"Right": v}``
        root: Optional tree root reported alongside the record
        depth: Expected tree depth; defaults to the record length

    Returns:
        MerkleProof with siblings in record order and ``Left -> 0``,
        ``Right -> 1`` path indices

    Raises:
        MalformedProofRecord: On an element without exactly one known key,
            an unreadable sibling, or a length outside the supported depths
    """
    if isinstance(record, (str, bytes, Mapping)):
        raise MalformedProofRecord("inclusion record must be a sequence of entries")

    siblings: List[int] = []
    path_indices: List[int] = []
    for idx, entry in enumerate(record):
        direction, sibling = _parse_entry(entry, idx)
        siblings.append(sibling)
        path_indices.append(PATH_INDEX_BY_DIRECTION[direction])

    length = len(siblings)
    if length < MIN_TREE_DEPTH or length > MAX_TREE_DEPTH:
        raise MalformedProofRecord(
            f"inclusion record has {length} levels; supported depths are "
            f"{MIN_TREE_DEPTH}..{MAX_TREE_DEPTH}"
        )
    if depth is not None and depth != length:
        raise MalformedProofRecord(
            f"inclusion record has {length} levels, expected {depth}"
        )

    root_value = None
    if root is not None:
        try:
            root_value = parse_field_element(root)
        except HashingInputError as exc:
            raise MalformedProofRecord(f"unreadable root: {root!r}") from exc

    return MerkleProof(
        siblings=tuple(siblings),
        path_indices=tuple(path_indices),
        root=root_value,
    )


def _parse_entry(entry: Any, idx: int) -> Tuple[str, int]:
    if not isinstance(entry, Mapping):
        raise MalformedProofRecord(f"proof[{idx}] must be a mapping")

    keys = list(entry.keys())
    if len(keys) != 1:
        raise MalformedProofRecord(
            f"proof[{idx}] must have exactly one of Left/Right, got {sorted(map(str, keys))}"
        )
    direction = keys[0]
    if direction not in PATH_INDEX_BY_DIRECTION:
        raise MalformedProofRecord(f"proof[{idx}] has unknown direction {direction!r}")

    try:
        sibling = parse_field_element(entry[direction])
    except HashingInputError as exc:
        raise MalformedProofRecord(f"proof[{idx}].{direction} is not a field element") from exc

    return direction, sibling
