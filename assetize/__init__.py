"""assetize - 把 npm 包转换为浏览器可直接加载的静态资源目录"""

__version__ = "0.3.0"
