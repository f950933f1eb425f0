"""
构建管道单元测试

测试构建管道、构建步骤、构建上下文和构建器等核心功能。
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from aptbuilder.build.build_context import (
    BuildContext,
    BuildError,
    InputError,
    PackageError,
    RepositoryIOError,
    SigningError,
)
from aptbuilder.build.build_pipeline import BuildPipeline
from aptbuilder.build.builder import Builder
from aptbuilder.build.steps import (
    PackageDiscoveryStep,
    PackageIndexStep,
    ReleaseManifestStep,
    SigningStep,
    TreeBuildingStep,
)
from aptbuilder.build.steps.build_step import BuildStep
from aptbuilder.config.schema import BuilderConfig


class MockBuildStep(BuildStep):
    """模拟构建步骤"""

    def __init__(self, name="MockStep", description="Mock step", progress_range=(0, 10)):
        super().__init__(name, description)
        self._progress_range = progress_range
        self.execute_called = False
        self.execute_context = None

    def get_progress_range(self):
        return self._progress_range

    def execute(self, context):
        self.execute_called = True
        self.execute_context = context
        context.build_stats['mock_processed'] = True


def _mock_pipeline() -> BuildPipeline:
    """把默认步骤替换为模拟步骤的管道"""
    pipeline = BuildPipeline(reader=MagicMock())
    for step in pipeline.get_steps():
        start, end = step.get_progress_range()
        pipeline.replace_step(MockBuildStep(step.name, step.description, (start, end)))
    return pipeline


class TestBuildStep:
    """BuildStep 基类测试"""

    def test_build_step_interface(self):
        """测试构建步骤接口"""
        step = MockBuildStep()

        assert step.name == "MockStep"
        assert step.description == "Mock step"
        assert step.get_progress_range() == (0, 10)
        assert not step.execute_called

    def test_build_step_execute(self):
        """测试构建步骤执行"""
        step = MockBuildStep()
        context = MagicMock()

        step.execute(context)

        assert step.execute_called
        assert step.execute_context == context

    def test_default_step_names(self):
        assert PackageDiscoveryStep().name == "discover"
        assert TreeBuildingStep().name == "tree"
        assert PackageIndexStep().name == "index"
        assert ReleaseManifestStep().name == "release"
        assert SigningStep().name == "sign"


class TestBuildContext:
    """BuildContext 测试"""

    def test_init(self, tmp_path):
        """测试初始化"""
        config = BuilderConfig(input=tmp_path / "in", output=tmp_path / "out")
        reader = MagicMock()

        context = BuildContext(config, reader)

        assert context.config == config
        assert context.reader is reader
        assert context.progress_callback is None
        assert context.components == []
        assert context.architectures == set()
        assert context.release_path is None
        for key in ('start_time', 'end_time', 'total_packages', 'total_size', 'total_contents_rows', 'index_files'):
            assert key in context.build_stats

    def test_paths(self, tmp_path):
        config = BuilderConfig(input=tmp_path / "in", output=tmp_path / "out")
        context = BuildContext(config, MagicMock())

        assert context.distribution_path == tmp_path / "out" / "dists" / "termux"
        assert context.component_path("extras") == tmp_path / "out" / "dists" / "termux" / "extras"

    def test_report_progress(self, tmp_path):
        """测试进度回调"""
        callback = MagicMock()
        context = BuildContext(BuilderConfig(), MagicMock(), callback)

        context.report_progress("阶段", 42, "消息")

        callback.assert_called_once_with("阶段", 42, 100, "消息")

    def test_report_progress_without_callback(self):
        BuildContext(BuilderConfig(), MagicMock()).report_progress("阶段", 42)


class TestBuildPipeline:
    """BuildPipeline 测试"""

    def test_init(self):
        """测试初始化"""
        pipeline = BuildPipeline()

        steps = pipeline.get_steps()
        assert len(steps) == 5  # 默认的5个步骤
        assert [s.name for s in steps] == ["discover", "tree", "index", "release", "sign"]

    def test_add_step(self):
        """测试添加步骤"""
        pipeline = BuildPipeline()
        initial_count = len(pipeline.get_steps())

        new_step = MockBuildStep("NewStep")
        pipeline.add_step(new_step)

        assert len(pipeline.get_steps()) == initial_count + 1
        assert pipeline.get_steps()[-1] == new_step

    def test_add_step_with_position(self):
        """测试在指定位置添加步骤"""
        pipeline = BuildPipeline()

        new_step = MockBuildStep("NewStep")
        pipeline.add_step(new_step, position=0)

        assert pipeline.get_steps()[0] == new_step

    def test_remove_step(self):
        """测试移除步骤"""
        pipeline = BuildPipeline()
        initial_count = len(pipeline.get_steps())

        pipeline.remove_step("sign")

        assert len(pipeline.get_steps()) == initial_count - 1
        assert "sign" not in [s.name for s in pipeline.get_steps()]

    def test_remove_nonexistent_step(self):
        """测试移除不存在的步骤"""
        pipeline = BuildPipeline()
        initial_count = len(pipeline.get_steps())

        pipeline.remove_step("NonExistent")
        assert len(pipeline.get_steps()) == initial_count  # 数量不变

    def test_replace_step(self):
        pipeline = BuildPipeline()
        replacement = MockBuildStep("index", progress_range=(50, 80))

        pipeline.replace_step(replacement)

        assert pipeline.get_steps()[2] is replacement

    def test_get_steps_returns_copy(self):
        """测试 get_steps 返回副本"""
        pipeline = BuildPipeline()
        steps1 = pipeline.get_steps()
        steps2 = pipeline.get_steps()

        assert steps1 is not steps2
        assert steps1 == steps2

    def test_validate_pipeline_valid(self):
        """测试验证有效管道"""
        assert BuildPipeline().validate_pipeline() == []

    def test_validate_pipeline_empty(self):
        """测试验证空管道"""
        pipeline = BuildPipeline()
        for step in pipeline.get_steps():
            pipeline.remove_step(step.name)

        errors = pipeline.validate_pipeline()
        assert "构建管道中没有步骤" in errors[0]

    def test_validate_pipeline_invalid_progress_ranges(self):
        """测试验证无效进度范围"""
        pipeline = BuildPipeline()
        pipeline.add_step(MockBuildStep("Invalid", progress_range=(100, 90)))

        errors = pipeline.validate_pipeline()
        assert any("进度范围无效" in error for error in errors)

    def test_validate_pipeline_non_continuous_progress(self):
        """测试验证不连续进度范围"""
        pipeline = BuildPipeline()
        pipeline.add_step(MockBuildStep("Discontinuous", progress_range=(5, 15)), position=0)

        errors = pipeline.validate_pipeline()
        assert any("进度范围不连续" in error for error in errors)

    def test_validate_pipeline_not_ending_at_100(self):
        """测试验证未以100结束的管道"""
        pipeline = BuildPipeline()
        pipeline.remove_step("sign")

        errors = pipeline.validate_pipeline()
        assert any("不是100%" in error for error in errors)

    def test_execute_success(self, tmp_path):
        """测试成功执行"""
        pipeline = _mock_pipeline()
        config = BuilderConfig(input=tmp_path / "in", output=tmp_path / "out")

        context = pipeline.execute(config)

        assert context.build_stats['end_time'] >= context.build_stats['start_time']
        assert context.build_stats['mock_processed']
        for step in pipeline.get_steps():
            assert step.execute_called
            assert step.execute_context is context

    def test_execute_with_build_error(self, tmp_path):
        """测试步骤抛出 BuildError 时原样传递"""
        pipeline = _mock_pipeline()
        failing = MockBuildStep("tree", progress_range=(10, 50))
        failing.execute = MagicMock(side_effect=PackageError("bad package"))
        pipeline.replace_step(failing)

        with pytest.raises(PackageError, match="bad package"):
            pipeline.execute(BuilderConfig(input=tmp_path, output=tmp_path / "out"))

        # 后续步骤不再执行
        assert not pipeline.get_steps()[2].execute_called

    def test_execute_wraps_unexpected_error(self, tmp_path):
        """测试意外异常被包装为 BuildError"""
        pipeline = _mock_pipeline()
        failing = MockBuildStep("index", progress_range=(50, 80))
        failing.execute = MagicMock(side_effect=RuntimeError("boom"))
        pipeline.replace_step(failing)

        with pytest.raises(BuildError) as exc_info:
            pipeline.execute(BuilderConfig(input=tmp_path, output=tmp_path / "out"))

        assert "boom" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestBuilder:
    """Builder 测试"""

    def test_missing_paths(self):
        result = Builder().build(BuilderConfig())

        assert not result.success
        assert result.error_type == "InputError"
        assert "input" in result.error

    def test_missing_input_directory(self, tmp_path):
        result = Builder().build(BuilderConfig(input=tmp_path / "missing", output=tmp_path / "out"))

        assert not result.success
        assert result.error_type == "InputError"
        assert not (tmp_path / "out").exists()

    def test_empty_input_directory(self, input_dir, make_config):
        result = Builder().build(make_config())

        assert not result.success
        assert result.error_type == "InputError"
        assert ".deb" in result.error

    def test_unsupported_architecture_fails_build(self, input_dir, output_dir, make_deb, make_config):
        make_deb(input_dir / "x.deb", package="x", architecture="i686")

        result = Builder().build(make_config())

        assert not result.success
        assert result.error_type == "PackageError"
        assert not (output_dir / "dists" / "termux" / "Release").exists()

    def test_full_build(self, input_dir, output_dir, make_deb, make_config):
        """测试完整构建流程"""
        make_deb(input_dir / "foo.deb", package="foo", architecture="all")
        make_deb(input_dir / "bar" / "baz.deb", package="baz", architecture="arm")
        make_deb(input_dir / "bar" / "qux.deb", package="qux", architecture="aarch64")
        progress = []

        result = Builder().build(make_config(), progress_callback=lambda s, c, t, m: progress.append(c))

        dist = output_dir / "dists" / "termux"
        assert result.success, result.error
        assert result.release_path == dist / "Release"
        assert result.components == ["bar", "extras"]
        assert result.architectures == ["aarch64", "all", "arm"]
        assert result.signed_files == []
        assert result.build_time is not None and result.build_time >= 0
        for path in (
            "extras/binary-all/foo.deb",
            "extras/binary-all/Packages",
            "extras/binary-all/Packages.xz",
            "extras/Contents-all",
            "extras/Contents-all.xz",
            "bar/binary-arm/baz.deb",
            "bar/binary-aarch64/qux.deb",
            "bar/Contents-arm.xz",
            "bar/Contents-aarch64.xz",
        ):
            assert (dist / path).is_file(), path
        assert progress == sorted(progress)
        assert progress[-1] == 100

    def test_rebuild_is_stable(self, input_dir, output_dir, make_deb, make_config):
        """相同输入重复构建，索引内容不变"""
        make_deb(input_dir / "foo.deb")
        config = make_config()

        Builder().build(config)
        dist = output_dir / "dists" / "termux" / "extras"
        first = (dist / "binary-all" / "Packages").read_text(), (dist / "Contents-all").read_text()
        Builder().build(config)
        second = (dist / "binary-all" / "Packages").read_text(), (dist / "Contents-all").read_text()

        assert first == second

    def test_validate_build_pipeline(self):
        assert Builder().validate_build_pipeline() == []
        assert isinstance(Builder().get_pipeline(), BuildPipeline)

    @patch("aptbuilder.build.build_pipeline.DebControlReader")
    def test_default_reader(self, reader_cls):
        builder = Builder()
        assert builder.get_pipeline().reader is reader_cls.return_value


class TestBuildErrors:
    """错误类型测试"""

    def test_hierarchy(self):
        for error_cls in (InputError, PackageError, RepositoryIOError, SigningError):
            assert issubclass(error_cls, BuildError)

    def test_package_error_path(self):
        error = PackageError("bad", Path("/in/x.deb"))
        assert str(error) == "bad"
        assert error.package_path == Path("/in/x.deb")
