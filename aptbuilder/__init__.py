"""
termux-apt-builder - 从 .deb 文件目录构建 APT 软件仓库

Builds an APT repository tree (Packages, Contents, Release) from a directory of .deb files.
"""

__version__ = "1.0.0"
__author__ = "PhateValleyman"
__email__ = "Jonas.Ned@outlook.com"
__license__ = "MIT"

from .config.schema import BuilderConfig
from .build.builder import Builder, BuildResult

__all__ = ["BuilderConfig", "Builder", "BuildResult", "__version__"]
