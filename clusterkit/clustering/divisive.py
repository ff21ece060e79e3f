"""Divisive (top-down) hierarchical clustering."""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from ..core.dendrogram import Dendrogram, MergeStep
from ..core.distance import DistanceMatrix
from ..exceptions import InvalidInput
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Node:
    """A cluster created during splitting."""
    node_id: int
    members: np.ndarray  # sorted point indices


@dataclass
class _Split:
    parent: _Node
    splinter: _Node
    remainder: _Node
    height: float


class DivisiveEngine:
    """
    Top-down splitting into a merge tree.

    Each iteration splits the most diffuse cluster (largest average
    within-cluster dissimilarity) with a splinter group: the member farthest
    on average from the rest seeds it, then members closer on average to the
    splinter group than to the remaining group move over one at a time.

    Splits are stored as merge steps at the diameter of the cluster before it
    was split, ordered by ascending height with later splits first among
    equal heights, so cuts work exactly as they do for agglomerative trees.
    """

    def run(self, distance_matrix: DistanceMatrix) -> Dendrogram:
        """
        Split until every cluster is a singleton.

        Args:
            distance_matrix: Pairwise dissimilarities between the points

        Returns:
            Dendrogram with n - 1 merge steps
        """
        if not isinstance(distance_matrix, DistanceMatrix):
            raise InvalidInput(
                f"Expected a DistanceMatrix, got {type(distance_matrix).__name__}"
            )

        n = distance_matrix.n_samples
        square = distance_matrix.to_square()
        logger.info(f"Running divisive clustering on {n} points")

        next_node_id = 0
        root = _Node(node_id=next_node_id, members=np.arange(n))
        next_node_id += 1

        active: List[_Node] = [root]
        splits: List[_Split] = []

        while len(splits) < n - 1:
            target = self._most_diffuse(active, square)
            splinter_members, remainder_members = self._split(target.members, square)

            splinter = _Node(node_id=next_node_id, members=splinter_members)
            remainder = _Node(node_id=next_node_id + 1, members=remainder_members)
            next_node_id += 2

            height = float(square[np.ix_(target.members, target.members)].max())
            splits.append(_Split(target, splinter, remainder, height))
            logger.debug(
                f"Split {len(splits) - 1}: {len(target.members)} points -> "
                f"{len(splinter_members)} + {len(remainder_members)} at {height:.6g}"
            )

            active.remove(target)
            active.extend((splinter, remainder))

        return Dendrogram(self._to_merge_steps(splits, n), n, method='divisive')

    def _most_diffuse(self, active: List[_Node], square: np.ndarray) -> _Node:
        best = None
        best_score = -np.inf
        # Creation order breaks ties toward the older cluster
        for node in sorted(active, key=lambda candidate: candidate.node_id):
            size = len(node.members)
            if size < 2:
                continue
            block = square[np.ix_(node.members, node.members)]
            score = block.sum() / (size * (size - 1))
            if score > best_score:
                best, best_score = node, score
        return best

    def _split(self, members: np.ndarray, square: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Divide a cluster into a splinter group and the remainder.

        Args:
            members: Sorted point indices of the cluster (at least 2)
            square: Full distance matrix

        Returns:
            Tuple of (splinter members, remaining members), each sorted
        """
        block = square[np.ix_(members, members)]
        size = len(members)

        in_splinter = np.zeros(size, dtype=bool)
        seed = int(np.argmax(block.sum(axis=1) / (size - 1)))
        in_splinter[seed] = True

        while np.count_nonzero(~in_splinter) > 1:
            remaining = ~in_splinter
            n_remaining = np.count_nonzero(remaining)
            n_splinter = np.count_nonzero(in_splinter)

            to_rest = block[:, remaining].sum(axis=1) / (n_remaining - 1)
            to_splinter = block[:, in_splinter].sum(axis=1) / n_splinter
            margin = np.where(remaining, to_rest - to_splinter, -np.inf)

            candidate = int(np.argmax(margin))
            if margin[candidate] <= 0:
                break
            in_splinter[candidate] = True

        return members[in_splinter], members[~in_splinter]

    def _to_merge_steps(self, splits: List[_Split], n: int) -> List[MergeStep]:
        # A child never has a larger diameter than its parent, so this order
        # still merges children first. Internal ids follow merge order.
        ordered = sorted(reversed(splits), key=lambda split: split.height)
        assigned = {}

        def cluster_id(node: _Node) -> int:
            if len(node.members) == 1:
                return int(node.members[0])
            return assigned[node.node_id]

        steps = []
        for t, split in enumerate(ordered):
            left_id, right_id = sorted((cluster_id(split.splinter), cluster_id(split.remainder)))
            new_id = n + t
            assigned[split.parent.node_id] = new_id
            steps.append(MergeStep(
                left_id=left_id,
                right_id=right_id,
                height=split.height,
                new_id=new_id,
                size=len(split.parent.members)
            ))
        return steps

    def get_params(self) -> dict:
        return {'linkage': 'divisive'}
