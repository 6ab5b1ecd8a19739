"""Tests for the API client and command line tool."""

import json
from unittest.mock import Mock, patch

import pytest

from src.client import cli
from src.client.paper_client import PaperClient, PaperClientError


def api_response(status_code=200, body=None):
    response = Mock(status_code=status_code, text=json.dumps(body))
    response.json.return_value = body
    return response


def status_body(status, progress=0, name="scan.png"):
    return {
        "id": "p1",
        "fileName": name,
        "status": status,
        "progress": progress,
        "steps": [{"name": "Text Extraction (OCR)", "status": "in-progress"}],
        "analysisResults": {"wordCount": 42} if status == "analyzed" else None,
    }


@pytest.fixture
def mock_requests():
    with patch("src.client.paper_client.requests") as mock:
        yield mock


@pytest.fixture
def api_client():
    return PaperClient("http://api.test/", token="tok")


class TestPaperClient:
    """Test cases for PaperClient."""

    def test_login_stores_token(self, mock_requests):
        mock_requests.post.return_value = api_response(
            body={"token": "new-token", "user": {"id": "u1", "email": "t@x.y", "role": "teacher"}}
        )
        client = PaperClient("http://api.test")

        user = client.login("t@x.y", "pw", "teacher")

        assert user["id"] == "u1"
        assert client.token == "new-token"
        assert client.headers == {"Authorization": "Bearer new-token"}
        url = mock_requests.post.call_args.args[0]
        assert url == "http://api.test/api/auth/login"
        assert mock_requests.post.call_args.kwargs["json"] == {
            "email": "t@x.y",
            "password": "pw",
            "role": "teacher",
        }

    def test_error_response_raises(self, mock_requests, api_client):
        mock_requests.get.return_value = api_response(404, {"message": "Paper not found"})

        with pytest.raises(PaperClientError) as exc_info:
            api_client.get_status("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Paper not found"

    def test_non_json_error(self, mock_requests, api_client):
        response = Mock(status_code=502, text="Bad Gateway")
        response.json.side_effect = ValueError("no json")
        mock_requests.get.return_value = response

        with pytest.raises(PaperClientError) as exc_info:
            api_client.get_status("p1")
        assert exc_info.value.body == "Bad Gateway"

    def test_upload_sends_multipart_form(self, mock_requests, api_client, tmp_path):
        scan = tmp_path / "scan.png"
        scan.write_bytes(b"png")
        essay = tmp_path / "essay.docx"
        essay.write_bytes(b"docx")
        papers = [{"id": "p1", "fileName": "scan.png", "status": "uploaded", "progress": 0}]
        mock_requests.post.return_value = api_response(body={"papers": papers})

        result = api_client.upload_papers(
            [scan, str(essay)],
            subject="Physics",
            total_marks=50,
            sections=[{"name": "A", "marks": 50}],
            student_id="s1",
        )

        assert result == papers
        kwargs = mock_requests.post.call_args.kwargs
        assert kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert kwargs["data"] == {
            "subject": "Physics",
            "totalMarks": "50",
            "sections": '[{"name": "A", "marks": 50}]',
            "studentId": "s1",
        }
        names = [(field, part[0], part[2]) for field, part in kwargs["files"]]
        assert names == [
            ("files", "scan.png", "image/png"),
            ("files", "essay.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ]
        assert all(part[1].closed for _, part in kwargs["files"])

    def test_wait_for_paper_polls_until_terminal(self, mock_requests, api_client):
        mock_requests.get.side_effect = [
            api_response(body=status_body("processing", 20)),
            api_response(body=status_body("processing", 50)),
            api_response(body=status_body("analyzed", 100)),
        ]
        updates = []

        with patch("src.client.paper_client.time.sleep") as sleep:
            final = api_client.wait_for_paper("p1", interval=2, on_update=updates.append)

        assert final["status"] == "analyzed"
        assert [u["progress"] for u in updates] == [20, 50, 100]
        assert sleep.call_count == 2
        sleep.assert_called_with(2)

    def test_wait_for_paper_stops_on_error(self, mock_requests, api_client):
        mock_requests.get.return_value = api_response(body=status_body("error", 50))

        with patch("src.client.paper_client.time.sleep") as sleep:
            assert api_client.wait_for_paper("p1")["status"] == "error"
        sleep.assert_not_called()

    def test_wait_for_paper_times_out(self, mock_requests, api_client):
        mock_requests.get.return_value = api_response(body=status_body("processing", 50))

        with patch("src.client.paper_client.time.sleep"), patch(
            "src.client.paper_client.time.monotonic", side_effect=[0, 5, 11]
        ):
            with pytest.raises(TimeoutError):
                api_client.wait_for_paper("p1", interval=5, timeout=10)

    def test_save_result(self, mock_requests, api_client):
        mock_requests.put.return_value = api_response(body={"message": "saved", "paper": {}})

        api_client.save_result("p1", {"percentage": 70}, student_id="s1")

        assert mock_requests.put.call_args.args[0] == "http://api.test/api/papers/p1/result"
        assert mock_requests.put.call_args.kwargs["json"] == {
            "result": {"percentage": 70},
            "studentId": "s1",
        }

    def test_grade(self, mock_requests, api_client):
        mock_requests.post.return_value = api_response(body={"percentage": 90})
        assert api_client.grade({"studentAnswers": "x"}) == {"percentage": 90}


class TestCli:
    """Test cases for the paper-grader command."""

    def test_load_sections_from_string_and_file(self, tmp_path):
        assert cli.load_sections('[{"name": "A"}]') == [{"name": "A"}]

        path = tmp_path / "sections.json"
        path.write_text('[{"name": "B"}]')
        assert cli.load_sections(str(path)) == [{"name": "B"}]

    def test_load_sections_rejects_object(self):
        with pytest.raises(ValueError):
            cli.load_sections('{"name": "A"}')

    def test_account_options_precede_command(self):
        parser = cli.build_parser()

        args = parser.parse_args(["--email", "t@x.y", "--password", "pw", "status", "p1"])
        assert (args.email, args.command, args.paper_id) == ("t@x.y", "status", "p1")

        with pytest.raises(SystemExit):
            parser.parse_args(["status", "--email", "t@x.y", "p1"])

    def test_credentials_required(self, monkeypatch, capsys):
        monkeypatch.delenv("PAPER_GRADER_EMAIL", raising=False)
        monkeypatch.delenv("PAPER_GRADER_PASSWORD", raising=False)

        assert cli.main(["status", "p1"]) == 2
        assert "--email and --password" in capsys.readouterr().err

    def test_upload_and_wait(self, tmp_path, capsys):
        scan = tmp_path / "scan.png"
        scan.write_bytes(b"png")
        client = Mock()
        client.upload_papers.return_value = [{"id": "p1", "fileName": "scan.png"}]
        client.wait_for_paper.return_value = status_body("analyzed", 100)

        with patch("src.client.cli.PaperClient", return_value=client):
            code = cli.main(
                [
                    "--email", "t@x.y", "--password", "pw",
                    "upload", str(scan),
                    "--subject", "Physics", "--total-marks", "10",
                    "--sections", '[{"name": "A", "marks": 10}]',
                ]
            )

        assert code == 0
        client.login.assert_called_once_with("t@x.y", "pw", "teacher")
        assert client.upload_papers.call_args.kwargs["total_marks"] == 10
        assert "42 words extracted" in capsys.readouterr().out

    def test_failed_paper_sets_exit_code(self, tmp_path):
        client = Mock()
        client.upload_papers.return_value = [{"id": "p1", "fileName": "scan.png"}]
        client.wait_for_paper.return_value = status_body("error", 50)

        with patch("src.client.cli.PaperClient", return_value=client):
            code = cli.main(
                [
                    "--email", "t@x.y", "--password", "pw",
                    "upload", "scan.png",
                    "--subject", "Physics", "--total-marks", "10",
                    "--sections", "[]",
                ]
            )

        assert code == 1

    def test_api_error_reported(self, capsys):
        client = Mock()
        client.login.side_effect = PaperClientError("Invalid credentials", status_code=401)

        with patch("src.client.cli.PaperClient", return_value=client):
            code = cli.main(["--email", "t@x.y", "--password", "bad", "status", "p1"])

        assert code == 1
        assert "Invalid credentials" in capsys.readouterr().err
