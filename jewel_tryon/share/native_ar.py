# share/native_ar.py
import logging

from jewel_tryon.errors import CapabilityError
from jewel_tryon.model.models import ViewerConfig, ViewerOptions
from jewel_tryon.utils.config import ARConfig

logger = logging.getLogger(__name__)


class NativeARBridge:
    """
    Hands products with a 3D model to the platform AR viewer.
    When it is used, the 2D landmark pipeline does not run at all for that
    session. Support is decided once per product and cached.
    """

    def __init__(self, capabilities, config=None, viewer=None):
        self.capabilities = capabilities
        self.config = config or ARConfig()
        self.viewer = viewer  # host callback taking a ViewerConfig
        self._support = {}

    @property
    def ar_modes(self):
        offered = set(self.capabilities.ar_modes)
        return tuple(m for m in self.config.modes if m in offered)

    def default_options(self):
        return ViewerOptions(
            auto_rotate=self.config.auto_rotate,
            camera_controls=self.config.camera_controls,
            shadow_intensity=self.config.shadow_intensity,
            exposure=self.config.exposure,
        )

    def is_supported(self, asset):
        key = asset.product_id
        if key not in self._support:
            has_model = asset.has_3d_model(self.config.model_suffixes)
            # No 3D asset means the 2D path, whatever the platform offers
            self._support[key] = has_model and bool(self.ar_modes)
            logger.info(
                "Native AR for %s: %s (3D model=%s, modes=%s)",
                asset.name, self._support[key], has_model, ",".join(self.ar_modes) or "none",
            )
        return self._support[key]

    def build_config(self, asset, options=None):
        options = options or self.default_options()
        poster = options.poster or asset.poster_url
        return ViewerConfig(
            src=asset.model_url,
            alt=asset.name,
            poster=poster,
            ar_modes=self.ar_modes,
            camera_controls=options.camera_controls,
            auto_rotate=options.auto_rotate,
            shadow_intensity=options.shadow_intensity,
            exposure=options.exposure,
        )

    def render(self, asset, options=None):
        if not self.is_supported(asset):
            raise CapabilityError(f"Native AR not available for {asset.name}")
        config = self.build_config(asset, options)
        if self.viewer is not None:
            self.viewer(config)
        return config

