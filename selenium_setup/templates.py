"""
Templates for the files generated inside the Selenium project.

Only README.txt is parameterised (Chrome version and setup date); the
other artifacts are fixed text.
"""

from datetime import datetime
from string import Template
from typing import Optional


REQUIREMENTS_FILE = "requirements.txt"
ACTIVATE_FILE = "activate.sh"
SMOKE_TEST_FILE = "test_selenium.py"
EXAMPLE_FILE = "example.py"
README_FILE = "README.txt"


ACTIVATE_SH = Template('''\
#!/bin/bash
DIR="$$(cd "$$(dirname "$${BASH_SOURCE[0]}")" && pwd)"
source "$$DIR/$venv_name/bin/activate"
echo "✓ Selenium environment activated"
echo "  Run: python test_selenium.py"
''')


SMOKE_TEST_PY = '''\
#!/usr/bin/env python3
"""
Test script for Selenium setup
"""
from selenium import webdriver
from selenium.webdriver.chrome.service import Service
from webdriver_manager.chrome import ChromeDriverManager
import sys

def test_chrome():
    print("Testing Chrome installation...")
    try:
        # Setup Chrome options
        options = webdriver.ChromeOptions()
        options.add_argument('--headless')
        options.add_argument('--no-sandbox')
        options.add_argument('--disable-dev-shm-usage')

        # Initialize driver
        print("Downloading ChromeDriver (if needed)...")
        service = Service(ChromeDriverManager().install())
        driver = webdriver.Chrome(service=service, options=options)

        # Test navigation
        print("Testing navigation...")
        driver.get('https://www.google.com')
        print(f"✓ Success! Page title: {driver.title}")

        driver.quit()
        return True
    except Exception as e:
        print(f"✗ Test failed: {e}")
        return False

if __name__ == "__main__":
    success = test_chrome()
    sys.exit(0 if success else 1)
'''


EXAMPLE_PY = '''\
#!/usr/bin/env python3
"""
Example Selenium script for web automation
"""
from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.chrome.service import Service
from webdriver_manager.chrome import ChromeDriverManager
import time

def main():
    print("=" * 50)
    print("Selenium Example Script")
    print("=" * 50)

    # Setup Chrome options
    options = webdriver.ChromeOptions()
    options.add_argument('--start-maximized')
    # options.add_argument('--headless')  # Uncomment for headless mode

    # Initialize driver
    print("\\n1. Starting Chrome browser...")
    service = Service(ChromeDriverManager().install())
    driver = webdriver.Chrome(service=service, options=options)

    try:
        # Navigate to website
        print("2. Navigating to example.com...")
        driver.get("https://www.example.com")

        # Wait for page to load
        wait = WebDriverWait(driver, 10)
        heading = wait.until(
            EC.presence_of_element_located((By.TAG_NAME, "h1"))
        )

        # Get page information
        print("3. Page loaded successfully!")
        print(f"   Title: {driver.title}")
        print(f"   Heading: {heading.text}")

        # Take screenshot
        screenshot = "example.png"
        driver.save_screenshot(screenshot)
        print(f"4. Screenshot saved: {screenshot}")

        # Get page source length
        print(f"5. Page source length: {len(driver.page_source)} characters")

        # Execute JavaScript
        url = driver.execute_script("return window.location.href")
        print(f"6. Current URL: {url}")

        time.sleep(2)

    except Exception as e:
        print(f"Error: {e}")
    finally:
        # Close browser
        print("7. Closing browser...")
        driver.quit()

    print("\\n✓ Example completed successfully!")

if __name__ == "__main__":
    main()
'''


README_TXT = Template('''\
Selenium Project Setup
=====================
Chrome Version: $chrome_version
Setup Date: $setup_date

Files:
- $venv_name/    : Python virtual environment
- test_selenium.py : Quick test script
- example.py      : Example automation script
- requirements.txt: Python dependencies
- activate.sh     : Script to activate environment

Usage:
1. Activate environment: source ./activate.sh
2. Run test:           python test_selenium.py
3. Run example:        python example.py

To install additional packages:
  pip install package_name
''')


def format_setup_date(now: Optional[datetime] = None) -> str:
    """Format a timestamp the way ``date`` prints it."""
    now = now or datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()
    return now.strftime("%a %b %d %H:%M:%S %Z %Y")


def render_requirements(packages: list[str]) -> str:
    return "".join(f"{name}\n" for name in packages)


def render_activate(venv_name: str) -> str:
    return ACTIVATE_SH.substitute(venv_name=venv_name)


def render_readme(chrome_version: str, venv_name: str, now: Optional[datetime] = None) -> str:
    """Render README.txt for a given Chrome version and setup time."""
    return README_TXT.substitute(
        chrome_version=chrome_version,
        setup_date=format_setup_date(now),
        venv_name=venv_name,
    )


def render_project_files(
    chrome_version: str,
    venv_name: str,
    packages: list[str],
    now: Optional[datetime] = None,
) -> dict[str, tuple[str, bool]]:
    """Render every generated file.

    Returns:
        Mapping of file name to ``(content, executable)``
    """
    return {
        REQUIREMENTS_FILE: (render_requirements(packages), False),
        ACTIVATE_FILE: (render_activate(venv_name), True),
        SMOKE_TEST_FILE: (SMOKE_TEST_PY, False),
        EXAMPLE_FILE: (EXAMPLE_PY, False),
        README_FILE: (render_readme(chrome_version, venv_name, now), False),
    }
