from storefront.app.config import MotionSettings
from storefront.replay_motion import load_samples, main, replay


def write_csv(path, rows):
    lines = ["timestamp_ms,x,y,z,linear"] + [",".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_replay_finds_shakes_after_guard(tmp_path):
    csv = tmp_path / "samples.csv"
    write_csv(
        csv,
        [
            (0, 0.1, 0.2, 0.1, 1),
            (500, 40.0, 0.0, 0.0, 1),   # inside startup guard
            (2500, 1.0, 1.0, 1.0, 1),
            (2600, 30.0, 5.0, 0.0, 1),
            (3000, 0.0, 0.0, 9.8, 0),   # seeds fallback history
            (3100, 6.0, 6.0, 9.8, 0),   # (6+6)/100*10000 = 1200
        ],
    )
    samples = load_samples(csv, skip_header=1)
    assert len(samples) == 6
    assert samples[4].has_linear_acceleration is False
    assert replay(samples, MotionSettings()) == [2600, 3100]


def test_cli_reports_count(tmp_path, capsys):
    csv = tmp_path / "samples.csv"
    write_csv(csv, [(0, 0.0, 0.0, 0.0, 1), (2000, 50.0, 0.0, 0.0, 1)])
    assert main([str(csv)]) == 0
    assert "1 shake(s) in 2 samples" in capsys.readouterr().out


def test_cli_bad_file(tmp_path):
    assert main([str(tmp_path / "missing.csv")]) == 1
