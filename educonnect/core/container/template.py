import pathlib

import jinja2
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, ThreadSafeSingleton

from educonnect.core import di


class TemplateContainer(DeclarativeContainer):
    @staticmethod
    @di.inject
    def provide_llm_env(template_path: str, root_path: pathlib.Path = di.Provide["root"]) -> jinja2.Environment:
        """Provide Jinja2 environment for LLM prompt templates.

        Prompts are plain text, so there is no autoescape; block tags are
        trimmed so templates can be laid out legibly.
        """
        import educonnect.lib.json

        env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(root_path.joinpath(template_path)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.policies.update({
            "json.dumps_function": educonnect.lib.json.dumps,
        })
        return env

    config: Configuration = Configuration(strict=True)
    llm: Provider[jinja2.Environment] = ThreadSafeSingleton(provide_llm_env, config.llm_path)
