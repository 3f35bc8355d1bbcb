"""Hello World -- the simplest kiln example.

Expand a template from a string with context variables, then compile once
and run the same script with different values. No templates directory
needed.

Run:
    python app.py
"""

from kiln import Environment

env = Environment()

# Compile and run in one call
output = env.expand(source="Hello, {$name}!", name="World")

# Compile once, run many times
script = env.compile("<?py shout = name.upper() ?>Hello, {$shout}!")


def main() -> None:
    print(output)
    print()

    for name in ["kiln", "Tom & Jerry", "Python"]:
        print(env.run(script, name=name))


if __name__ == "__main__":
    main()
