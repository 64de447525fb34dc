"""Source checkout: clone or update the configured repository."""

from __future__ import annotations

from pipectl.domain.stages import StageName
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome


class CheckoutStage(Stage):
    name = StageName.CHECKOUT
    description = "Clone or update sources and record the commit"

    def run(self, ctx: StageContext) -> StageOutcome:
        source = ctx.settings.source
        target = ctx.workspace.source_dir

        if source.repository is None:
            message = "Using existing sources"
        elif (target / ".git").exists():
            ctx.sh(["git", "fetch", "origin", source.branch], cwd=target)
            ctx.sh(["git", "checkout", "--force", "FETCH_HEAD"], cwd=target)
            message = f"Updated {source.branch} from {source.repository}"
        else:
            if target == ctx.workspace.root.resolve():
                raise StageError(
                    "Cannot clone into the workspace root; set [source] directory "
                    "to a subdirectory such as \"src\"",
                    directory=str(target),
                )
            if target.exists() and any(target.iterdir()):
                raise StageError(
                    f"Source directory {target} is not empty and not a git checkout",
                    directory=str(target),
                )
            target.parent.mkdir(parents=True, exist_ok=True)
            ctx.sh(
                ["git", "clone", "--branch", source.branch, source.repository, str(target)],
                cwd=target.parent,
            )
            message = f"Cloned {source.repository} ({source.branch})"

        ctx.state.commit = self._head_commit(ctx)
        data = {"commit": ctx.state.commit} if ctx.state.commit else {}
        return StageOutcome(message=message, data=data)

    @staticmethod
    def _head_commit(ctx: StageContext) -> str | None:
        """Short HEAD hash, or None outside a git work tree."""
        target = ctx.workspace.source_dir
        if not target.is_dir() or ctx.runner.which("git") is None:
            return None
        result = ctx.sh(["git", "rev-parse", "--short", "HEAD"], cwd=target, check=False)
        if not result.ok:
            return None
        return result.output.strip() or None
