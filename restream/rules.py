#!/usr/bin/env python3
"""Routing filters built from configuration.

Each entry under restream.rules becomes one RoutingFilter on a
ModuleLoader, in file order:

    restream:
      rules:
        - name: strip-debug
          match: {namespace: myapp, file_name_matches: "^views"}
          any: [{class_name: handlers}, {fqn: myapp.main}]
          not: [{fqn: myapp.settings}]
          cache: true
          transforms:
            - {type: template, context: {DEBUG: false}}
            - {type: replace, pattern: "print\\(.*\\)", replacement: "pass"}
"""

from typing import Any, Dict, List, Optional

from restream.core.constants import ConfigKey, TransformType
from restream.core.validators import validate_rule_config, validate_transform_config
from restream.filters.base import BaseFilter, Conjunction
from restream.filters.routing import RoutingFilter
from restream.infrastructure.cache import LRUCache, cache_from_config
from restream.infrastructure.logger import get_logger
from restream.loader.hooks import MetaPathHooks
from restream.loader.module_loader import ModuleLoader, loader_from_config
from restream.stream.channel import ChannelRegistry
from restream.transforms.base import Transform
from restream.transforms.replace import ReplaceTransform
from restream.transforms.template import TemplateTransform


def build_transform(config: Dict[str, Any]) -> Transform:
    """Create a transform from its configuration entry.

    Raises:
        ValidationError: If the entry is invalid
    """
    validate_transform_config(config)

    transform_type = TransformType(config[ConfigKey.TRANSFORM_TYPE])
    if transform_type is TransformType.TEMPLATE:
        return TemplateTransform(context=config.get(ConfigKey.TRANSFORM_CONTEXT, {}))

    return ReplaceTransform(
        config[ConfigKey.TRANSFORM_PATTERN],
        config.get(ConfigKey.TRANSFORM_REPLACEMENT, ""),
        count=int(config.get(ConfigKey.TRANSFORM_COUNT, 0)),
    )


def _add_leaves(target: BaseFilter, leaves: Dict[str, str]) -> BaseFilter:
    for leaf, value in leaves.items():
        getattr(target, leaf)(value)
    return target


def apply_rule(
    loader: ModuleLoader, rule: Dict[str, Any], cache: Optional[LRUCache] = None
) -> RoutingFilter:
    """Add one configured rule to loader.

    Args:
        loader: Loader receiving the routing filter
        rule: Rule configuration dictionary
        cache: Store for rules with cache enabled

    Returns:
        The new routing filter

    Raises:
        ValidationError: If the rule is invalid; loader is left unchanged
    """
    validate_rule_config(rule)
    transforms = [build_transform(t) for t in rule.get(ConfigKey.RULE_TRANSFORMS, [])]

    routing = loader.when()

    if rule.get(ConfigKey.RULE_WITH_VENDORS, False):
        routing.with_vendors()

    _add_leaves(routing, rule.get(ConfigKey.RULE_MATCH, {}))

    alternatives = rule.get(ConfigKey.RULE_ANY, [])
    if alternatives:

        def build_alternatives(group: BaseFilter) -> None:
            for entry in alternatives:
                group.where(_add_leaves(Conjunction(), entry))

        routing.any(build_alternatives)

    for entry in rule.get(ConfigKey.RULE_NOT, []):
        routing.not_(_add_leaves(Conjunction(), entry))

    use_cache = rule.get(ConfigKey.RULE_CACHE, False) and cache is not None
    for transform in transforms:
        if use_cache:
            routing.through(cache, transform)
        else:
            routing.then(transform)

    get_logger().debug(
        "Rule applied",
        rule=rule.get(ConfigKey.RULE_NAME, routing.channel.name),
        transforms=len(transforms),
    )
    return routing


def build_loader(
    config,
    registry: Optional[ChannelRegistry] = None,
    hooks: Optional[MetaPathHooks] = None,
) -> ModuleLoader:
    """Create an unregistered ModuleLoader with every configured rule.

    Args:
        config: ConfigManager instance
        registry: Channel registry (default registry if None)
        hooks: Meta path hooks (sys.meta_path if None)

    Returns:
        Loader ready to register()
    """
    loader = loader_from_config(config, registry=registry, hooks=hooks, register=False)
    rules: List[Dict[str, Any]] = config.get(ConfigKey.RULES) or []

    cache = None
    if any(isinstance(rule, dict) and rule.get(ConfigKey.RULE_CACHE) for rule in rules):
        cache = cache_from_config(config)

    for rule in rules:
        apply_rule(loader, rule, cache)

    return loader
