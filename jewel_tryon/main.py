# main.py
"""
Desktop try-on window for one product.

Run:
  python -m jewel_tryon.main --name "Diamond Jhumkas" --category Earrings --image data/assets/jhumka.png
  python -m jewel_tryon.main --name "Solitaire Ring" --category Rings --model data/assets/solitaire.glb
"""
import argparse
import logging
import re
import sys

from PyQt5.QtWidgets import QApplication, QMainWindow

from jewel_tryon.model.models import AssetReference, Category
from jewel_tryon.trackers.capabilities import detect_capabilities
from jewel_tryon.trackers.landmark_provider import get_landmark_provider, reset_landmark_provider
from jewel_tryon.ui.styles import get_stylesheet
from jewel_tryon.ui.tryon_view import TryOnWindow
from jewel_tryon.utils.config import load_config

logger = logging.getLogger(__name__)


class MainApp(QMainWindow):
    def __init__(self, asset, config, capabilities, provider):
        super().__init__()
        self.setWindowTitle(f"{config.share.brand} - Virtual Try-On: {asset.name}")
        self.resize(1280, 800)
        self.setStyleSheet(get_stylesheet())

        self.tryon_screen = TryOnWindow(asset, config, capabilities, provider)
        self.setCentralWidget(self.tryon_screen)

    def closeEvent(self, event):
        """Release camera and model runtimes before the app goes away."""
        logger.info("App closing: releasing camera and models...")
        self.tryon_screen.stop()
        event.accept()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="AR jewellery try-on")
    parser.add_argument("--name", required=True, help="product name")
    parser.add_argument("--category", required=True, help="catalogue category, e.g. Earrings, Necklaces, Rings")
    parser.add_argument("--id", dest="product_id", help="product id (defaults to a slug of the name)")
    parser.add_argument("--image", help="overlay image (PNG with alpha), path or URL")
    parser.add_argument("--model", help="3D model (.glb/.gltf/.obj/.usdz), path or URL")
    parser.add_argument("--poster", help="image shown while the 3D model loads")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--debug", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def asset_from_args(args):
    return AssetReference(
        product_id=args.product_id or re.sub(r"[^a-z0-9]+", "-", args.name.lower()).strip("-"),
        name=args.name,
        category=Category.from_label(args.category),
        image_url=args.image,
        model_url=args.model,
        poster_url=args.poster,
    )


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    asset = asset_from_args(args)
    logger.info("Loading %s (%s)...", asset.name, asset.category.value)

    app = QApplication(sys.argv[:1])
    capabilities = detect_capabilities(config)
    provider = get_landmark_provider(config, capabilities)

    window = MainApp(asset, config, capabilities, provider)
    window.show()
    window.tryon_screen.start()

    code = app.exec_()
    reset_landmark_provider()
    return code


if __name__ == "__main__":
    sys.exit(main())
