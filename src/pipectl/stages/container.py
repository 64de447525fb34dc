"""Optional container stage: build one image per tier, optionally publish.

Only tiers whose directory holds a Dockerfile are built. Publishing logs in
with the password on stdin, pushes every tag, and always logs out again.
"""

from __future__ import annotations

from jinja2 import TemplateError

from pipectl.domain.stages import StageName
from pipectl.infrastructure.templates import render_inline
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome
from pipectl.stages.structure import TIERS


def image_tags(ctx: StageContext, tier: str) -> list[str]:
    """Fully qualified ``image:tag`` references for *tier*."""
    container = ctx.settings.container
    variables = {
        "project": ctx.settings.project.name,
        "tier": tier,
        "build_number": str(ctx.run_number),
        "commit": ctx.state.commit or "",
    }
    try:
        image = render_inline(container.image, **variables)
        tag = render_inline(container.tag, **variables)
    except TemplateError as exc:
        raise StageError(f"Invalid image template: {exc}") from exc
    if not image or not tag:
        raise StageError("Image name and tag must not render empty", image=image, tag=tag)

    if container.registry:
        image = f"{container.registry.rstrip('/')}/{image}"
    tags = [tag]
    if container.tag_latest and tag != "latest":
        tags.append("latest")
    return [f"{image}:{t}" for t in tags]


class ContainerStage(Stage):
    name = StageName.CONTAINER
    description = "Build container images and optionally push them"

    def run(self, ctx: StageContext) -> StageOutcome:
        container = ctx.settings.container
        engine = container.engine
        warnings: list[str] = []
        built: list[str] = []

        for tier in TIERS:
            directory = ctx.workspace.tier_dir(tier)
            if not (directory / container.dockerfile).is_file():
                warnings.append(f"Skipping {tier} image: no {container.dockerfile}")
                continue
            refs = image_tags(ctx, tier)
            args = [engine, "build", "-f", container.dockerfile]
            for ref in refs:
                args.extend(["-t", ref])
            args.append(".")
            ctx.sh(args, cwd=directory)
            built.extend(refs)

        if not built:
            return StageOutcome(message="No images built", warnings=warnings)

        ctx.state.images = built
        pushed: list[str] = []
        if ctx.options.push:
            pushed = self._publish(ctx, built)

        message = f"Built {len(built)} image tags"
        if pushed:
            message += f", pushed {len(pushed)}"
        return StageOutcome(
            message=message,
            data={"images": built, "pushed": pushed},
            warnings=warnings,
        )

    @staticmethod
    def _publish(ctx: StageContext, refs: list[str]) -> list[str]:
        container = ctx.settings.container
        if not container.username or container.password is None:
            raise StageError("Registry credentials are required to push images")

        password = container.password.get_secret_value()
        registry = [container.registry] if container.registry else []
        cwd = ctx.workspace.root

        login = [container.engine, "login", "--username", container.username, "--password-stdin"]
        ctx.sh([*login, *registry], cwd=cwd, stdin=password)
        pushed: list[str] = []
        try:
            for ref in refs:
                ctx.sh([container.engine, "push", ref], cwd=cwd)
                pushed.append(ref)
        finally:
            ctx.cleanup([container.engine, "logout", *registry], cwd=cwd)
        return pushed
