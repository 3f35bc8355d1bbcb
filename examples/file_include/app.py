"""File-based templates with includes -- the most common real-world pattern.

Reads the page template from disk. Includes are searched in the current
directory first, then in the ``templates/`` directory given as include
path. Embedded code loops over the navigation items of the included
partial.

Run:
    python app.py
"""

from pathlib import Path

from kiln import Environment, xml_escape

templates_dir = Path(__file__).parent / "templates"
env = Environment(include_path=[templates_dir])

script = env.compile(source_file=templates_dir / "page.html")

nav_items = [
    {"url": "/", "label": "Home"},
    {"url": "/about", "label": "About"},
]

home_output = env.run(
    script,
    site_name="My Site",
    nav_items=nav_items,
    xml_escape=xml_escape,
    page_title="Welcome",
    message="This is a kiln-generated page <with> escaped text.",
)

about_output = env.run(
    script,
    site_name="My Site",
    nav_items=nav_items,
    xml_escape=xml_escape,
    page_title="About Us",
    message="Templates are compiled once and run many times.",
)


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)
    print()
    print("=== Generated script ===")
    print(script.listing())


if __name__ == "__main__":
    main()
