"""License header generation.

The header is written to ``hack/boilerplate.go.txt`` before anything else
and then read back; the read-back text is what later templates embed, so the
file on disk and every embedded copy are byte-identical.
"""

from __future__ import annotations

import asyncio

from hybrid_scaffold.config import ProjectConfig
from hybrid_scaffold.errors import UnsupportedLicenseError
from hybrid_scaffold.scaffolder.executor import ScaffoldExecutor
from hybrid_scaffold.scaffolder.templates import BOILERPLATE, TemplateRenderer

APACHE2_LICENSE = """
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

LICENSES: dict[str, str] = {
    "apache2": APACHE2_LICENSE,
    "none": "",
}


def render_boilerplate(
    license: str,
    owner: str,
    year: int,
    renderer: TemplateRenderer | None = None,
) -> str:
    """Return the header text for *license* and *owner*.

    Raises:
        UnsupportedLicenseError: If *license* is not a known kind.
    """
    if license not in LICENSES:
        raise UnsupportedLicenseError(license, sorted(LICENSES))
    renderer = renderer or TemplateRenderer()
    return renderer.render(
        BOILERPLATE.template,
        {"year": year, "owner": owner, "license_text": LICENSES[license]},
    )


class BoilerplateProvider:
    """Produces the license header for a scaffold run.

    Writing goes through the run's executor, so the header file obeys the
    same overwrite policy and permissions as every other generated file.
    """

    def __init__(self, executor: ScaffoldExecutor, path: str = BOILERPLATE.path) -> None:
        self.executor = executor
        self.path = path

    async def produce(self, config: ProjectConfig) -> str:
        """Render and persist the header, then return the text read back."""
        header = render_boilerplate(
            config.license, config.owner, config.year, self.executor.renderer
        )
        await self.executor.write(self.path, header.encode("utf-8"))
        data = await asyncio.to_thread(self.executor.fs.read, self.path)
        return data.decode("utf-8")
