"""Application keys for type-safe app configuration access."""

from aiohttp import web

from titletypes.config import Config
from titletypes.core.preview import PreviewResolver
from titletypes.core.renderer import PageRenderer
from titletypes.core.routing import HostRouter
from titletypes.core.taxonomy import Taxonomy

config_key = web.AppKey("config", Config)
taxonomy_key = web.AppKey("taxonomy", Taxonomy)
resolver_key = web.AppKey("resolver", PreviewResolver)
renderer_key = web.AppKey("renderer", PageRenderer)
router_key = web.AppKey("router", HostRouter)
