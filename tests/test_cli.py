from main import run_simulation_cli


def test_cli_reports_geometry(capsys, tmp_path):
    code = run_simulation_cli(["--bonds", "3", "--lone-pairs", "1", "--steps", "200", "--dt", "0.1",
                               "--plot", str(tmp_path / "ax3e"), "--snapshot", str(tmp_path / "ax3e.png")])
    out = capsys.readouterr().out
    assert code == 0
    assert "Electron geometry: tetrahedral" in out
    assert "Molecular geometry: trigonal pyramidal" in out
    assert (tmp_path / "ax3e_force.png").exists()
    assert (tmp_path / "ax3e.png").exists()


def test_cli_real_molecule(capsys):
    assert run_simulation_cli(["--real", "XeF2", "--steps", "20"]) == 0
    assert "Molecular geometry: linear" in capsys.readouterr().out


def test_cli_rejects_too_many_groups():
    assert run_simulation_cli(["--bonds", "5", "--lone-pairs", "2", "--steps", "1"]) == 1
