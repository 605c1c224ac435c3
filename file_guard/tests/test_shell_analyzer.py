"""Tests for handlers.shell_analyzer module."""
from file_guard.handlers.shell_analyzer import (
    extract_args,
    extract_file_operations,
    extract_redirects,
    split_commands,
    tokenize,
)


def ops(command):
    result = extract_file_operations(command)
    return result.reads, result.writes, result.deletes


class TestSplitCommands:
    """Tests for sub-command splitting."""

    def test_statement_separators(self):
        """Should split on ;, && and ||."""
        assert split_commands("a; b && c || d") == ["a", "b", "c", "d"]

    def test_pipes(self):
        """Should split on | and |&."""
        assert split_commands("a | b |& c") == ["a", "b", "c"]

    def test_double_pipe_is_one_operator(self):
        """|| should not leave an empty sub-command between two pipes."""
        assert split_commands("cat .env || echo fallback") == ["cat .env", "echo fallback"]

    def test_newline_separates(self):
        """Newlines should act like ;."""
        assert split_commands("cat a\nrm b") == ["cat a", "rm b"]

    def test_quoted_operators_are_ignored(self):
        """Operators inside quotes should not split."""
        assert split_commands("echo 'a; b' && grep \"x|y\" f") == ["echo 'a; b'", 'grep "x|y" f']

    def test_clobber_redirect_is_not_a_pipe(self):
        """>| should stay in one sub-command."""
        assert split_commands("echo x >| out") == ["echo x >| out"]

    def test_redirect_ampersands_do_not_split(self):
        """&>, >& and <& belong to redirects."""
        assert split_commands("cmd &> log") == ["cmd &> log"]
        assert split_commands("cmd 2>&1") == ["cmd 2>&1"]
        assert split_commands("cmd <&3") == ["cmd <&3"]

    def test_background_ampersand_splits(self):
        """A background & ends its command, even when glued to a word."""
        assert split_commands("cat .env&") == ["cat .env"]
        assert split_commands("sleep 1 & rm x") == ["sleep 1", "rm x"]

    def test_line_continuation_joins(self):
        """Backslash-newline continues the same command."""
        assert split_commands("grep -rn KEY \\\n  .env") == ["grep -rn KEY    .env"]
        assert split_commands("cat \\\r\n.env") == ["cat  .env"]

    def test_line_continuation_in_single_quotes_is_literal(self):
        """Inside single quotes backslash-newline is kept, and stays one command."""
        assert split_commands("echo 'a\\\nb'") == ["echo 'a\\\nb'"]

    def test_empty_parts_dropped(self):
        """Leading, trailing and repeated separators produce no empty parts."""
        assert split_commands(";; a ;") == ["a"]


class TestTokenize:
    """Tests for quote-aware tokenizing."""

    def test_strips_quotes(self):
        """Quotes should be removed and embedded spaces kept."""
        assert tokenize("cat \"my .env\" 'other file'") == ["cat", "my .env", "other file"]

    def test_adjacent_quoted_parts_join(self):
        """Quoted and unquoted parts of one word should join."""
        assert tokenize("cat pre'fix suf'fix") == ["cat", "prefix suffix"]


class TestExtractArgs:
    """Tests for positional argument extraction."""

    def test_drops_flags(self):
        """Short and long flags should be dropped."""
        assert extract_args(["-n", "--color=auto", "file"]) == ["file"]

    def test_double_dash_ends_flags(self):
        """Tokens after -- are positional even if they look like flags."""
        assert extract_args(["-f", "--", "-weird"]) == ["-weird"]

    def test_drops_empty_tokens(self):
        """Empty quoted strings are not paths."""
        assert extract_args(["", "file"]) == ["file"]

    def test_drops_stray_backslash(self):
        """A lone backslash is not a path."""
        assert extract_args(["\\", "file"]) == ["file"]


class TestExtractRedirects:
    """Tests for redirect extraction."""

    def test_output_redirect(self):
        """> should record a write and be removed from the command."""
        assert extract_redirects("echo hi > out.txt") == ("echo hi", [], ["out.txt"])

    def test_append_redirect(self):
        """>> should record a write."""
        assert extract_redirects("echo hi >> log")[2] == ["log"]

    def test_fd_prefix_is_dropped(self):
        """2> should not leave a stray 2 argument."""
        assert extract_redirects("cmd 2> err.log") == ("cmd", [], ["err.log"])

    def test_digit_inside_word_is_kept(self):
        """A trailing digit that is part of a word is not a descriptor."""
        remaining, _, writes = extract_redirects("cat file2>out")
        assert remaining == "cat file2"
        assert writes == ["out"]

    def test_input_redirect(self):
        """< should record a read."""
        assert extract_redirects("sort < input.txt") == ("sort", ["input.txt"], [])

    def test_adjacent_redirects(self):
        """Redirect targets end at the next redirect operator."""
        assert extract_redirects("cat<in>out") == ("cat", ["in"], ["out"])

    def test_read_write_redirect(self):
        """<> should record both a read and a write."""
        assert extract_redirects("exec 3<> file") == ("exec", ["file"], ["file"])

    def test_descriptor_duplication_is_not_a_path(self):
        """2>&1 and >&- should record nothing."""
        assert extract_redirects("cmd 2>&1")[1:] == ([], [])
        assert extract_redirects("cmd >&-")[1:] == ([], [])

    def test_ampersand_forms_write(self):
        """&>, &>> and >&file should record writes."""
        assert extract_redirects("cmd &> all.log")[2] == ["all.log"]
        assert extract_redirects("cmd &>> all.log")[2] == ["all.log"]
        assert extract_redirects("cmd >&all.log")[2] == ["all.log"]

    def test_clobber_redirect(self):
        """>| should record a write."""
        assert extract_redirects("echo x >| f")[2] == ["f"]

    def test_quoted_target(self):
        """Quoted targets should be unquoted with spaces kept."""
        assert extract_redirects('echo x > "my file.txt"')[2] == ["my file.txt"]

    def test_quoted_operator_is_literal(self):
        """A > inside quotes is not a redirect."""
        assert extract_redirects('echo "a > b" > c.txt') == ('echo "a > b"', [], ["c.txt"])

    def test_heredoc_and_herestring_not_recorded(self):
        """<<, <<- and <<< targets are not files."""
        assert extract_redirects("cat <<EOF")[1:] == ([], [])
        assert extract_redirects("cat <<-EOF")[1:] == ([], [])
        assert extract_redirects('cat <<< "text"')[1:] == ([], [])


class TestExtractFileOperations:
    """Tests for end-to-end command analysis."""

    def test_cat_with_flag(self):
        """cat -n .env reads .env."""
        assert ops("cat -n .env") == ([".env"], [], [])

    def test_quoted_path_with_space(self):
        """cat "my .env" reads the unquoted path."""
        assert ops('cat "my .env"') == (["my .env"], [], [])

    def test_sed_in_place_is_write(self):
        """sed -i treats non-expression arguments as writes."""
        assert ops("sed -i 's/a/b/' config.yaml") == ([], ["config.yaml"], [])

    def test_sed_keeps_absolute_paths(self):
        """Absolute paths should be preserved unmodified."""
        assert ops("sed -i 's/a/b/' /etc/app/config.yaml") == ([], ["/etc/app/config.yaml"], [])

    def test_sed_in_place_with_suffix(self):
        """-i.bak and --in-place should count as in-place."""
        assert ops("sed -i.bak 's/a/b/' app.conf") == ([], ["app.conf"], [])
        assert ops("sed --in-place 's/a/b/' app.conf") == ([], ["app.conf"], [])

    def test_sed_without_in_place_is_read(self):
        """Plain sed reads its files."""
        assert ops("sed 's/a/b/' config.yaml") == (["config.yaml"], [], [])

    def test_sed_transliterate_expression_filtered(self):
        """y/// expressions are not paths."""
        assert ops("sed 'y/abc/xyz/' data.txt") == (["data.txt"], [], [])

    def test_pipe_into_grep(self):
        """cat .env | grep pattern reads .env only."""
        assert ops("cat .env | grep pattern") == ([".env"], [], [])

    def test_grep_files(self):
        """grep's first argument is the pattern, the rest are reads."""
        assert ops("grep -r KEY .env config.yaml") == ([".env", "config.yaml"], [], [])

    def test_rg_and_egrep(self):
        """Other grep family commands behave the same."""
        assert ops("rg token secrets.yml") == (["secrets.yml"], [], [])
        assert ops("egrep 'a|b' notes") == (["notes"], [], [])

    def test_or_fallback(self):
        """cat .env || echo fallback reads only .env."""
        assert ops("cat .env || echo fallback") == ([".env"], [], [])

    def test_read_family(self):
        """head, tail, less and more read their arguments."""
        assert ops("head -20 a; tail -f b; less c; more d") == (["a", "b", "c", "d"], [], [])

    def test_full_path_command(self):
        """Commands are classified by base name."""
        assert ops("/bin/cat .env") == ([".env"], [], [])

    def test_delete_family(self):
        """rm, unlink and shred delete their arguments."""
        assert ops("rm -rf build/ .git/config") == ([], [], ["build/", ".git/config"])
        assert ops("unlink LICENSE") == ([], [], ["LICENSE"])
        assert ops("shred -u key.pem") == ([], [], ["key.pem"])

    def test_copy_reads_sources_writes_destination(self):
        """cp and mv read sources and write the last argument."""
        assert ops("cp .env /tmp/x") == ([".env"], ["/tmp/x"], [])
        assert ops("mv a b c dir/") == (["a", "b", "c"], ["dir/"], [])

    def test_copy_single_argument_is_read(self):
        """A lone cp argument is treated as a read."""
        assert ops("cp .env") == ([".env"], [], [])

    def test_tee_writes(self):
        """tee writes its file arguments."""
        assert ops("echo x | tee -a log.txt other.txt") == ([], ["log.txt", "other.txt"], [])

    def test_redirects_combine_with_classification(self):
        """Redirect targets and command arguments are both collected."""
        assert ops("cat .env > /tmp/leak 2>&1") == ([".env"], ["/tmp/leak"], [])

    def test_multiple_sub_commands_aggregate(self):
        """Operations from every sub-command are aggregated in order."""
        assert ops("cat a && rm b; cp c d\nsort < e") == (["a", "c", "e"], ["d"], ["b"])

    def test_duplicates_kept(self):
        """The same path may appear more than once."""
        assert ops("cat a a") == (["a", "a"], [], [])

    def test_duplicates_kept_across_sub_commands(self):
        """Repeating a command keeps every occurrence."""
        assert ops("cat a; cat a") == (["a", "a"], [], [])
        assert ops("rm x && rm x") == ([], [], ["x", "x"])

    def test_independent_sub_commands_same_paths_in_any_order(self):
        """Reordering independent sub-commands reorders but doesn't change the paths."""
        forward = extract_file_operations("cat a; rm b; cp c d")
        backward = extract_file_operations("cp c d; rm b; cat a")
        assert sorted(forward.reads) == sorted(backward.reads) == ["a", "c"]
        assert forward.writes == backward.writes == ["d"]
        assert forward.deletes == backward.deletes == ["b"]

    def test_line_continuation_keeps_arguments(self):
        """Arguments on continuation lines belong to the command."""
        assert ops("cat \\\n  .env") == ([".env"], [], [])
        assert ops("grep -rn API_KEY \\\n  .env config/") == ([".env", "config/"], [], [])

    def test_newline_without_backslash_separates(self):
        """A plain newline still starts a new command."""
        assert ops("echo hi\ncat .env") == ([".env"], [], [])

    def test_background_job_target(self):
        """A path glued to a background & is reported without it."""
        assert ops("cat .env&") == ([".env"], [], [])
        assert ops("rm -rf build& echo done") == ([], [], ["build"])

    def test_unknown_commands_contribute_nothing(self):
        """Unrecognized commands produce no operations."""
        assert ops("python script.py .env") == ([], [], [])
        assert ops("echo .env") == ([], [], [])

    def test_empty_command(self):
        """An empty command produces nothing."""
        assert ops("") == ([], [], [])
        assert ops("   ") == ([], [], [])
