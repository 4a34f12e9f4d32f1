from rich.pretty import pprint

from parametizer import *

__styles__ = {
    "title": "bold cyan",
}

settings = Settings.load()

config = (
    ConfigBuilder(settings)
    .description("""
        Paints things.
        Every color is a subcommand.
    """)
    .usage("red wall --shade=dark")
    .new_flag("--dry-run", "-n")
    .description("Only show what would be painted.")
    .new_subcommand_switch("color")
    .new_subcommand(
        "red",
        ConfigBuilder(settings)
        .description("Paints with red paint.")
        .new_option("--shade", "-s").allowed_values(["dark", "light"]).default("light")
        .new_array_argument("targets")
        .description("Things to paint."),
    )
    .new_subcommand(
        "blue",
        ConfigBuilder(settings)
        .description("Paints with blue paint.")
        .new_argument("target").completion_list(["wall", "door", "fence"]),
    )
    .get_config()
)


if __name__ == '__main__':
    request = run(config)
    pprint(request)
    pprint(request.subcommand())
