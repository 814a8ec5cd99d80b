"""
Settings tree builder.

Arranges descriptors along the declared admin tree (categories, pages,
settings) for selection screens. Categories and pages that end up without
any setting are pruned; pruning cascades upwards, so it runs as a second
bottom-up pass over the built tree.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, Field

from presetarr.admin_tree import AdminCategory, AdminSetting, AdminSettingPage
from presetarr.services.setting_registry import SettingsMap, lookup


class TreeNode(BaseModel):
    id: str
    kind: str  # category, page or setting
    label: str
    description: str = ""
    parent: Optional[str] = None
    value: Optional[str] = None
    visible_value: Optional[str] = None
    children: List["TreeNode"] = Field(default_factory=list)


TreeNode.model_rebuild()


class SettingsTreeView(BaseModel):
    """Flattened tree, parallel lists in depth first order."""

    ids: List[str] = Field(default_factory=list)
    nodes: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    descriptions: List[str] = Field(default_factory=list)
    parents: List[Optional[str]] = Field(default_factory=list)


def _build(node: Any, settings_map: SettingsMap, parent: Optional[str]) -> Optional[TreeNode]:
    """Top-down pass: mirror the declared structure, attach present settings."""
    if isinstance(node, AdminCategory):
        tree_node = TreeNode(id=node.name, kind="category", label=node.visible_name or node.name, parent=parent)
        for child in node.children:
            built = _build(child, settings_map, node.name)
            if built is not None:
                tree_node.children.append(built)
        return tree_node

    if isinstance(node, AdminSettingPage):
        tree_node = TreeNode(id=node.name, kind="page", label=node.visible_name or node.name, parent=parent)
        for declared in node.settings:
            if not isinstance(declared, AdminSetting):
                continue
            setting = lookup(settings_map, declared.scope, declared.name)
            if setting is None:
                continue
            tree_node.children.append(
                TreeNode(
                    id=setting.id,
                    kind="setting",
                    label=setting.visible_name,
                    description=setting.description,
                    parent=node.name,
                    value=setting.value,
                    visible_value=setting.visible_value,
                )
            )
        return tree_node

    return None


def _prune(node: TreeNode) -> bool:
    """Bottom-up pass: drop branches without settings. Returns whether node survives."""
    if node.kind == "setting":
        return True
    node.children = [child for child in node.children if _prune(child)]
    return bool(node.children)


def build_tree(root: AdminCategory, settings_map: SettingsMap) -> List[TreeNode]:
    """
    Build the pruned settings tree.

    Args:
        root: Declared admin tree; its own node is not part of the output
        settings_map: Settings to place, from the live site or from a preset

    Returns:
        Top level category and page nodes, each with at least one setting below
    """
    top = _build(root, settings_map, None)
    if top is None:
        return []
    _prune(top)
    for child in top.children:
        child.parent = None
    return top.children


def flatten_tree(nodes: List[TreeNode]) -> SettingsTreeView:
    view = SettingsTreeView()

    def visit(node: TreeNode):
        view.ids.append(node.id)
        view.nodes.append(node.visible_value if node.kind == "setting" else node.label)
        view.labels.append(node.label)
        view.descriptions.append(node.description)
        view.parents.append(node.parent)
        for child in node.children:
            visit(child)

    for node in nodes:
        visit(node)
    return view


def count_settings(nodes: List[TreeNode]) -> int:
    return sum(1 if node.kind == "setting" else count_settings(node.children) for node in nodes)
