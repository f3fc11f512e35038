"""PictoNote: a photo journal that syncs entries and images with Firebase."""

__version__ = "0.1.0"
