import io
import os
import stat
import tarfile

import pytest

from conftest import error, output
from pkginstall.modules.archive import pack_package
from pkginstall.modules.binstub import WRAPPER_MARKER, InstallerOptions
from pkginstall.modules.descriptor import PackageDescriptor
from pkginstall.modules.errors import (
    DescriptorError,
    ExtensionBuildError,
    InvalidArchiveFormat,
    PathContainmentViolation,
    VersionConstraintUnmet,
)
from pkginstall.modules.extbuild import BUILD_NOTICE
from pkginstall.modules.installer import Installer


def build_archive(tmp_path, version="0.0.2", configure=None, **kw):
    src = tmp_path / f"src-{version}"
    (src / "bin").mkdir(parents=True)
    exe = src / "bin" / "my_exec"
    exe.write_text(f"#!/bin/sh\necho {version}\n")
    exe.chmod(0o755)
    extensions = ()
    if configure is not None:
        (src / "ext").mkdir()
        (src / "ext" / "configure").write_text(configure)
        extensions = ("ext/configure",)
    descriptor = PackageDescriptor(name="a", version=version, executables=("my_exec",),
                                   extensions=extensions, **kw)
    return pack_package(str(src), descriptor, str(tmp_path / "dist"))


def raw_archive(path, members):
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members:
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return str(path)


def installer(root, ui, use_wrappers=True):
    opts = InstallerOptions(use_wrappers=use_wrappers, interpreter_path="/usr/bin/python3", arch="x86_64-linux")
    return Installer(installation_root=str(root), options=opts, ui=ui)


def test_install_with_wrappers(tmp_path, install_root, ui):
    result = installer(install_root, ui).install(build_archive(tmp_path))

    pkg_dir = install_root / "packages" / "a-0.0.2"
    assert result.package_dir == str(pkg_dir)
    assert (pkg_dir / "bin" / "my_exec").read_text() == "#!/bin/sh\necho 0.0.2\n"
    assert stat.S_IMODE(os.stat(pkg_dir / "bin" / "my_exec").st_mode) == 0o755
    assert (install_root / "specifications" / "a-0.0.2.yaml").is_file()
    assert result.stubs == {"my_exec": "wrapper"}
    assert WRAPPER_MARKER in (install_root / "bin" / "my_exec").read_text()
    assert result.build_log is None
    assert output(ui) == ""


def test_install_symlinks_track_highest_version(tmp_path, install_root, ui):
    inst = installer(install_root, ui, use_wrappers=False)
    link = install_root / "bin" / "my_exec"

    inst.install(build_archive(tmp_path, "0.0.2"))
    inst.install(build_archive(tmp_path, "0.0.3"))
    assert os.readlink(link) == str(install_root / "packages" / "a-0.0.3" / "bin" / "my_exec")

    result = inst.install(build_archive(tmp_path, "0.0.1"))
    assert result.stubs == {"my_exec": "kept"}
    assert os.readlink(link) == str(install_root / "packages" / "a-0.0.3" / "bin" / "my_exec")
    assert (install_root / "packages" / "a-0.0.1" / "bin" / "my_exec").is_file()


def test_install_bad_archive(tmp_path, install_root, ui):
    broken = tmp_path / "broken-1.0.0.pkg.tar.gz"
    broken.write_bytes(b"garbage")

    with pytest.raises(InvalidArchiveFormat) as exc:
        installer(install_root, ui).install(str(broken))

    assert str(exc.value) == f"invalid package format for {broken}"
    assert not (install_root / "packages").exists()


def test_install_wrong_python_version(tmp_path, install_root, ui):
    archive = build_archive(tmp_path, required_versions={"python": "= 1.4.6"})

    with pytest.raises(VersionConstraintUnmet) as exc:
        installer(install_root, ui).install(archive)

    assert str(exc.value) == "a requires Python version = 1.4.6"
    assert not (install_root / "packages").exists()
    assert not (install_root / "bin").exists()


def test_install_force(tmp_path, install_root, ui):
    archive = build_archive(tmp_path, required_versions={"python": "= 1.4.6"})

    result = installer(install_root, ui).install(archive, force=True)

    assert result.stubs == {"my_exec": "wrapper"}


def test_install_with_message(tmp_path, install_root, ui):
    archive = build_archive(tmp_path, post_install_message="I am a shiny package!")

    installer(install_root, ui).install(archive)

    assert output(ui) == "I am a shiny package!\n"


def test_install_extension_failure_stops_before_bin(tmp_path, install_root, ui):
    archive = build_archive(tmp_path, configure="echo 'no compiler found'\nexit 1\n")

    with pytest.raises(ExtensionBuildError) as exc:
        installer(install_root, ui).install(archive)

    log = install_root / "packages" / "a-0.0.2" / "build.out"
    assert exc.value.build_log == str(log)
    assert "no compiler found" in log.read_text()
    assert output(ui) == BUILD_NOTICE + "\n"
    assert error(ui) == ""
    assert not (install_root / "bin").exists()
    assert not (install_root / "specifications").exists()


def test_install_escaping_entry_aborts(tmp_path, install_root, ui):
    path = raw_archive(tmp_path / "evil-1.0.pkg.tar.gz", [
        ("metadata.yaml", b"name: evil\nversion: '1.0'\nexecutables: [x]\n"),
        ("data/../../pwned", b"x"),
    ])

    with pytest.raises(PathContainmentViolation):
        installer(install_root, ui).install(path)

    assert not (install_root / "pwned").exists()
    assert not (install_root / "bin").exists()


def test_install_name_escaping_root_rejected(tmp_path, install_root, ui):
    path = raw_archive(tmp_path / "escaped-1.0.pkg.tar.gz", [
        ("metadata.yaml", b"name: ../../escaped\nversion: '1.0'\nexecutables: [x]\n"),
        ("data/bin/x", b"#!/bin/sh\n"),
    ])

    with pytest.raises(InvalidArchiveFormat):
        installer(install_root, ui).install(path)

    assert not (tmp_path / "escaped-1.0").exists()
    assert not (install_root / "packages").exists()


def test_package_dir_stays_under_root(install_root, ui):
    inst = installer(install_root, ui)

    with pytest.raises(PathContainmentViolation):
        inst.package_dir(PackageDescriptor(name="../../escaped", version="1.0"))

    assert inst.package_dir(PackageDescriptor(name="a", version="1.0-rc1")) == \
        str(install_root / "packages" / "a-1.0-rc1")


def test_install_invalid_version_constraint(tmp_path, install_root, ui):
    archive = build_archive(tmp_path, required_versions={"python": "~1.x"})

    with pytest.raises(DescriptorError):
        installer(install_root, ui).install(archive)

    assert not (install_root / "packages").exists()
