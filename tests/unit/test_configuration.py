"""Unit tests for process configuration options."""

import pytest

from scale_csi import configuration


def test_get_scale_opts_smoke():
    opts = configuration.get_scale_opts()
    assert isinstance(opts, list)
    assert any(opt.name == "config_path" for opt in opts)
    assert any(opt.name == "bootstrap_workers" for opt in opts)


def test_list_opts_group():
    groups = configuration.list_opts()
    assert groups[0][0] == configuration.CONF_GROUP


def test_build_conf_defaults():
    conf = configuration.build_conf()
    group = conf.spectrum_scale
    assert group.config_path == configuration.DEFAULT_CONFIG_PATH
    assert group.secrets_base_path == "/var/lib/ibm"
    assert group.cacert_base_path == "/var/lib/ibm/ssl/public"
    assert group.api_timeout == 60
    assert group.bootstrap_workers == 4
    # oslo.log options are registered on the same object
    assert conf.debug is False


def test_build_conf_reads_ini(temp_dir):
    ini = temp_dir / "scale-csi.conf"
    ini.write_text(
        "\n".join(
            [
                "[DEFAULT]",
                "debug = true",
                "[spectrum_scale]",
                "config_path = /etc/scale/clusters.json",
                "api_timeout = 15",
                "bootstrap_workers = 2",
                "",
            ]
        ),
        encoding="utf-8",
    )

    conf = configuration.build_conf([str(ini)])

    assert conf.debug is True
    assert conf.spectrum_scale.config_path == "/etc/scale/clusters.json"
    assert conf.spectrum_scale.api_timeout == 15
    assert conf.spectrum_scale.bootstrap_workers == 2


@pytest.mark.parametrize("name", ["api_timeout", "api_retry_count", "job_poll_interval", "job_timeout"])
def test_api_tuning_options_exist(name):
    opts = configuration.get_scale_opts()
    assert any(opt.name == name for opt in opts)
