"""
Selenium Setup - Chrome & Selenium environment provisioner.

Installs Google Chrome on Debian/Ubuntu hosts, detects its version and
scaffolds a ready-to-use Selenium project with its own virtual environment.
"""

__version__ = "0.1.0"
__author__ = "Selenium Setup Contributors"
