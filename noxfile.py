"""Nox configuration."""

import nox                                       # pylint: disable=import-error


@nox.session(python=['3.9', '3.10', '3.11', '3.12'], reuse_venv=True)
def test(session):
    """Run the tests under each supported Python."""
    session.install(
        'pytest',
        'pytest-asyncio',
        'pytest-xdist',
        'rich',
        'textual',
    )
    session.install('-e', '.')
    args = ['pytest', *session.posargs, '-n8', '-vv', '-x', 'tests']
    session.run(*args)


@nox.session(reuse_venv=True)
def release(session):
    """Generate a release."""
    session.install(
        'build',
        'rich',
        'textual',
    )
    session.run('python', '-m', 'build')
