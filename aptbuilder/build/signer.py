"""
GPG 签名

使用 python-gnupg 对 Release 文件进行签名：生成内联签名的 InRelease，
可选生成分离签名 Release.gpg。
"""

import os
from pathlib import Path
from typing import List, Optional, Union

import gnupg

PASSPHRASE_ENV = "GPG_SIGNING_PASSPHRASE"


class SignerError(Exception):
    """签名错误"""
    pass


class GpgSigner:
    """Release 签名器"""

    def __init__(
        self,
        key_id: Optional[str] = None,
        gnupghome: Optional[Union[str, Path]] = None,
        digest_algo: str = "SHA256",
        detached: bool = False,
        passphrase: Optional[str] = None,
    ):
        self.key_id = key_id
        self.gnupghome = str(gnupghome) if gnupghome else None
        self.digest_algo = digest_algo
        self.detached = detached
        self.passphrase = passphrase if passphrase is not None else os.getenv(PASSPHRASE_ENV)

    def _get_gpg(self) -> gnupg.GPG:
        """创建 GPG 实例

        Raises:
            SignerError: 找不到 gpg 可执行文件或密钥环不可用
        """
        try:
            if self.gnupghome:
                Path(self.gnupghome).mkdir(parents=True, exist_ok=True)
                return gnupg.GPG(gnupghome=self.gnupghome)
            return gnupg.GPG()
        except (OSError, ValueError) as e:
            raise SignerError(f"无法初始化 GPG: {e}") from e

    def _sign(self, gpg: gnupg.GPG, release_path: Path, output: Path, clearsign: bool) -> Path:
        extra_args = ["--yes", "--pinentry-mode", "loopback", "--digest-algo", self.digest_algo]
        with open(release_path, 'rb') as f:
            result = gpg.sign_file(
                f,
                keyid=self.key_id,
                passphrase=self.passphrase,
                clearsign=clearsign,
                detach=not clearsign,
                output=str(output),
                extra_args=extra_args,
            )

        if not result or not output.exists():
            message = f"签名失败 {output.name}"
            if getattr(result, 'status', None):
                message += f": {result.status}"
            raise SignerError(message)
        return output

    def sign(self, release_path: Path) -> List[Path]:
        """签名 Release 文件

        Args:
            release_path: Release 文件路径

        Returns:
            List[Path]: 生成的签名文件（InRelease，以及可选的 Release.gpg）

        Raises:
            SignerError: 签名失败
        """
        if not release_path.is_file():
            raise SignerError(f"待签名文件不存在: {release_path}")

        gpg = self._get_gpg()
        produced = [self._sign(gpg, release_path, release_path.with_name("InRelease"), clearsign=True)]
        if self.detached:
            produced.append(self._sign(gpg, release_path, release_path.with_name("Release.gpg"), clearsign=False))
        return produced
