"""admitpack - package admission policies into deployable manifests."""

__version__ = "0.1.0"
