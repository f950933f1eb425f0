"""
Release 签名步骤模块

签名是尽力而为的：失败时记录警告，Release 本身仍然有效；
只有 signing.strict 开启时才中止构建。
"""

from typing import Optional

from ...utils.logging import success, warning, error, LogStage
from aptbuilder.build.build_context import BuildContext, SigningError
from aptbuilder.build.signer import GpgSigner, SignerError
from .build_step import BuildStep


class SigningStep(BuildStep):
    """Release 签名步骤"""

    def __init__(self, signer: Optional[GpgSigner] = None):
        super().__init__("sign", "签名 Release 清单")
        self.signer = signer

    def get_progress_range(self) -> tuple[int, int]:
        return (95, 100)

    def _create_signer(self, context: BuildContext) -> GpgSigner:
        if self.signer is not None:
            return self.signer
        signing = context.config.signing
        return GpgSigner(
            key_id=signing.key_id,
            gnupghome=signing.gnupghome,
            digest_algo=signing.digest_algo,
            detached=signing.detached,
        )

    def execute(self, context: BuildContext) -> None:
        _, end = self.get_progress_range()
        signing = context.config.signing

        if not signing.enabled or context.release_path is None:
            context.report_progress("签名", end, "跳过签名")
            return

        try:
            context.signed_files = self._create_signer(context).sign(context.release_path)
        except (SignerError, OSError) as e:
            if signing.strict:
                error(f"签名失败: {e}", stage=LogStage.SIGN)
                raise SigningError(f"签名失败: {e}") from e
            warning(f"签名失败，仓库保持未签名状态: {e}", stage=LogStage.SIGN)
            context.signed_files = []
            context.report_progress("签名", end, "签名失败")
            return

        context.report_progress("签名", end, "签名完成")
        success(f"已签名: {', '.join(p.name for p in context.signed_files)}", stage=LogStage.SIGN)
