"""
Demonstration script for url_to_markdown.
"""

import logging

from readable_markdown.url_to_markdown import convert_to_markdown


def main():
    """
    Main function to run the demo.
    """
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    # The URL to be converted to Markdown
    url = "https://en.wikipedia.org/wiki/Very-large-scale_integration"

    # Render, extract and convert the page content
    result = convert_to_markdown(url)

    print(result)


if __name__ == "__main__":
    main()
