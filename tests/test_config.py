import pytest

from raftcore.config import Config, ReadOnlyOption, new_config
from raftcore.errors import ConfigInvalid


def test_defaults():
    cfg = Config()
    assert cfg.election_tick == 10 * cfg.heartbeat_tick
    assert cfg.max_inflight_msgs == 256
    assert cfg.read_only_option is ReadOnlyOption.SAFE
    assert cfg.id == 0


def test_new_config_sets_id_and_tag():
    cfg = new_config(7)
    assert cfg.id == 7
    assert cfg.tag == "7"
    assert cfg.election_tick == Config().election_tick
    cfg.validate()
    assert cfg.min_timeout() == cfg.election_tick


def test_timeouts_fall_back_to_election_tick():
    cfg = Config(id=1, election_tick=10)
    assert cfg.min_timeout() == cfg.election_tick
    assert cfg.max_timeout() == 2 * cfg.election_tick


def test_explicit_timeouts():
    cfg = Config(id=1, election_tick=10, min_election_tick=12, max_election_tick=30)
    assert cfg.min_timeout() == 12
    assert cfg.max_timeout() == 30


@pytest.mark.parametrize(
    "cfg, message",
    [
        (Config(), "invalid node id"),
        (Config(id=1, heartbeat_tick=0), "heartbeat tick must greater than 0"),
        (
            Config(id=1, election_tick=3, heartbeat_tick=3),
            "election tick must be greater than heartbeat tick",
        ),
        (
            Config(id=1, election_tick=10, min_election_tick=5),
            "min election tick 5 must not be less than election_tick 10",
        ),
        (
            Config(id=1, election_tick=10, min_election_tick=15, max_election_tick=15),
            "min election tick 15 should be less than max election tick 15",
        ),
        (Config(id=1, max_inflight_msgs=0), "max inflight messages must be greater than 0"),
        (
            Config(id=1, read_only_option=ReadOnlyOption.LEASE_BASED),
            "read_only_option == LeaseBased requires check_quorum == true",
        ),
    ],
)
def test_validate_errors(cfg, message):
    with pytest.raises(ConfigInvalid) as excinfo:
        cfg.validate()
    assert excinfo.value == ConfigInvalid(message)


def test_lease_based_with_check_quorum_is_valid():
    cfg = Config(id=1, read_only_option=ReadOnlyOption.LEASE_BASED, check_quorum=True)
    cfg.validate()
    assert cfg.check_quorum is True
    assert cfg.read_only_option is ReadOnlyOption.LEASE_BASED