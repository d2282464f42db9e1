"""
Parent/child lineage of multi-step transactions.

Links come from ``parent_tx_hash`` on the child and ``child_tx_hashes`` on the
parent; either side is enough. Revisiting a hash on the current path stops
the descent, so malformed cyclic data still yields a finite tree.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from crogentx.core.models import Transaction, TreeNode


def _index(transactions: Iterable[Transaction]) -> Dict[str, Transaction]:
    return {t.tx_hash: t for t in transactions}


def _children_index(by_hash: Dict[str, Transaction]) -> Dict[str, List[str]]:
    children: Dict[str, List[str]] = {}

    def add(parent: str, child: str) -> None:
        bucket = children.setdefault(parent, [])
        if child not in bucket:
            bucket.append(child)

    for tx in by_hash.values():
        for child in tx.child_tx_hashes or []:
            if child in by_hash:
                add(tx.tx_hash, child)
        if tx.parent_tx_hash and tx.parent_tx_hash in by_hash:
            add(tx.parent_tx_hash, tx.tx_hash)
    return children


def build_transaction_tree(root_hash: str, transactions: Iterable[Transaction]) -> Optional[TreeNode]:
    by_hash = _index(transactions)
    if root_hash not in by_hash:
        return None
    children = _children_index(by_hash)

    def make(tx_hash: str, depth: int, parent: Optional[str]) -> TreeNode:
        tx = by_hash[tx_hash]
        return TreeNode(
            id=tx.id,
            tx_hash=tx.tx_hash,
            name=f"{tx.instruction_type.value} {tx.tx_hash[:10]}",
            depth=depth,
            timestamp=tx.block_timestamp,
            status=tx.status,
            instruction_type=tx.instruction_type,
            parent=parent,
        )

    root = make(root_hash, 0, None)
    stack: List[Tuple[TreeNode, FrozenSet[str]]] = [(root, frozenset())]
    while stack:
        node, path = stack.pop()
        # a hash already on the path becomes a leaf
        if node.tx_hash in path:
            continue
        path = path | {node.tx_hash}
        for child_hash in children.get(node.tx_hash, []):
            child = make(child_hash, node.depth + 1, node.tx_hash)
            node.children.append(child)
            stack.append((child, path))
    return root


def get_ancestors(tx_hash: str, transactions: Iterable[Transaction]) -> List[Transaction]:
    """Nearest first."""
    by_hash = _index(transactions)
    parent_of: Dict[str, str] = {}
    for parent, kids in _children_index(by_hash).items():
        for kid in kids:
            parent_of.setdefault(kid, parent)

    out: List[Transaction] = []
    seen = {tx_hash}
    current = parent_of.get(tx_hash)
    while current is not None and current not in seen:
        seen.add(current)
        out.append(by_hash[current])
        current = parent_of.get(current)
    return out


def get_descendants(tx_hash: str, transactions: Iterable[Transaction]) -> List[Transaction]:
    """Depth-first, pre-order."""
    by_hash = _index(transactions)
    children = _children_index(by_hash)

    out: List[Transaction] = []
    seen = {tx_hash}
    stack = list(reversed(children.get(tx_hash, [])))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        out.append(by_hash[current])
        stack.extend(reversed(children.get(current, [])))
    return out


def calculate_tree_depth(node: TreeNode) -> int:
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, level = stack.pop()
        deepest = max(deepest, level)
        stack.extend((c, level + 1) for c in current.children)
    return deepest
