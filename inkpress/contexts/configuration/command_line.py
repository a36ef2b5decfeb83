"""
Mapping of an EngineConfig onto engine command-line flags.

Flags take the form ``--key`` or ``--key=value``. List-valued options are
either joined with commas into one flag (to_command) or repeated once per
value (to_commands).

base_command_line() holds the options shared by both session strategies
(logging and network); job_command_line() adds everything a one-shot job needs.
Control sessions pass the remaining options per job in the JSON descriptor.
"""

from typing import Any, Iterable, List, Optional

from inkpress.contexts.configuration.options import EngineConfig


def to_command(key: str, value: Any = None) -> str:
    """
    Format one flag.

    Examples:
        >>> to_command("verbose")
        '--verbose'
        >>> to_command("http-timeout", 30)
        '--http-timeout=30'
        >>> to_command("auth-method", ["basic", "digest"])
        '--auth-method=basic,digest'
    """
    if value is None:
        return f"--{key}"
    if isinstance(value, (list, tuple)):
        value = ",".join(str(v) for v in value)
    return f"--{key}={value}"


def to_commands(key: str, values: Iterable[Any]) -> List[str]:
    """Format one repeated flag per value."""
    return [to_command(key, value) for value in values]


def _flag(cmd: List[str], enabled: bool, key: str) -> None:
    if enabled:
        cmd.append(to_command(key))


def _option(cmd: List[str], value: Optional[Any], key: str) -> None:
    if value is not None:
        cmd.append(to_command(key, value))


def base_command_line(config: EngineConfig) -> List[str]:
    """
    Build the engine argv prefix shared by one-shot and control invocations.

    Args:
        config: Engine configuration snapshot

    Returns:
        argv list starting with the engine executable
    """
    cmd = [config.engine_path]

    log = config.logging
    _flag(cmd, log.verbose, "verbose")
    _flag(cmd, log.debug, "debug")
    _option(cmd, log.log, "log")
    _flag(cmd, log.no_warn_css_unknown, "no-warn-css-unknown")
    _flag(cmd, log.no_warn_css_unsupported, "no-warn-css-unsupported")

    net = config.network
    _flag(cmd, net.no_network, "no-network")
    _flag(cmd, net.no_redirects, "no-redirects")
    _option(cmd, net.auth_user, "auth-user")
    _option(cmd, net.auth_password, "auth-password")
    _option(cmd, net.auth_server, "auth-server")
    _option(cmd, net.auth_scheme, "auth-scheme")
    if net.auth_methods:
        cmd.append(to_command("auth-method", net.auth_methods))
    _flag(cmd, net.no_auth_preemptive, "no-auth-preemptive")
    _option(cmd, net.http_proxy, "http-proxy")
    _option(cmd, net.http_timeout, "http-timeout")
    cmd.extend(to_commands("cookie", net.cookies))
    _option(cmd, net.cookie_jar, "cookiejar")
    _option(cmd, net.ssl_ca_cert, "ssl-cacert")
    _option(cmd, net.ssl_ca_path, "ssl-capath")
    _option(cmd, net.ssl_cert, "ssl-cert")
    _option(cmd, net.ssl_cert_type, "ssl-cert-type")
    _option(cmd, net.ssl_key, "ssl-key")
    _option(cmd, net.ssl_key_type, "ssl-key-type")
    _option(cmd, net.ssl_key_password, "ssl-key-password")
    _option(cmd, net.ssl_version, "ssl-version")
    _flag(cmd, net.insecure, "insecure")
    _flag(cmd, net.no_parallel_downloads, "no-parallel-downloads")

    return cmd


def job_command_line(config: EngineConfig, log_type: str) -> List[str]:
    """
    Build the full argv for a one-shot job, without inputs or output target.

    Args:
        config: Engine configuration snapshot
        log_type: Structured-log mode, 'normal' (output to file) or
            'buffered' (output to stdout)

    Returns:
        argv list; callers append inputs and --output / --raster-output
    """
    cmd = base_command_line(config)
    cmd.append(to_command("structured-log", log_type))

    inp = config.input
    _option(cmd, inp.input_type, "input")
    _option(cmd, inp.base_url, "baseurl")
    cmd.extend(to_commands("remap", inp.remaps))
    _flag(cmd, inp.xinclude, "xinclude")
    _flag(cmd, inp.xml_external_entities, "xml-external-entities")
    _flag(cmd, inp.no_local_files, "no-local-files")
    _flag(cmd, inp.iframes, "iframes")

    js = config.javascript
    _flag(cmd, js.javascript, "javascript")
    cmd.extend(to_commands("script", js.scripts))
    _option(cmd, js.max_passes, "max-passes")

    css = config.css
    cmd.extend(to_commands("style", css.style_sheets))
    _option(cmd, css.media, "media")
    _option(cmd, css.page_size, "page-size")
    _option(cmd, css.page_margin, "page-margin")
    _flag(cmd, css.no_author_style, "no-author-style")
    _flag(cmd, css.no_default_style, "no-default-style")

    pdf = config.pdf
    _option(cmd, pdf.pdf_id, "pdf-id")
    _option(cmd, pdf.pdf_lang, "pdf-lang")
    _option(cmd, pdf.pdf_profile, "pdf-profile")
    _option(cmd, pdf.pdf_output_intent, "pdf-output-intent")
    _option(cmd, pdf.pdf_script, "pdf-script")
    cmd.extend(
        to_command("pdf-event-script", f"{event}:{script}")
        for event, script in pdf.pdf_event_scripts
    )
    cmd.extend(to_commands("attach", [a.url for a in pdf.file_attachments]))
    _flag(cmd, pdf.no_artificial_fonts, "no-artificial-fonts")
    _flag(cmd, pdf.no_embed_fonts, "no-embed-fonts")
    _flag(cmd, pdf.no_subset_fonts, "no-subset-fonts")
    _flag(cmd, pdf.no_system_fonts, "no-system-fonts")
    _flag(cmd, pdf.force_identity_encoding, "force-identity-encoding")
    _flag(cmd, pdf.no_compress, "no-compress")
    _flag(cmd, pdf.no_object_streams, "no-object-streams")
    _flag(cmd, pdf.convert_colors, "convert-colors")
    _option(cmd, pdf.fallback_cmyk_profile, "fallback-cmyk-profile")
    _flag(cmd, pdf.tagged_pdf, "tagged-pdf")
    _flag(cmd, pdf.pdf_forms, "pdf-forms")
    _option(cmd, pdf.css_dpi, "css-dpi")

    meta = config.metadata
    _option(cmd, meta.title, "pdf-title")
    _option(cmd, meta.subject, "pdf-subject")
    _option(cmd, meta.author, "pdf-author")
    if meta.keywords:
        cmd.append(to_command("pdf-keywords", meta.keywords))
    _option(cmd, meta.creator, "pdf-creator")
    _option(cmd, meta.xmp, "pdf-xmp")

    enc = config.encryption
    _flag(cmd, enc.encrypt, "encrypt")
    _option(cmd, enc.key_bits, "key-bits")
    _option(cmd, enc.user_password, "user-password")
    _option(cmd, enc.owner_password, "owner-password")
    _flag(cmd, enc.disallow_print, "disallow-print")
    _flag(cmd, enc.disallow_copy, "disallow-copy")
    _flag(cmd, enc.allow_copy_for_accessibility, "allow-copy-for-accessibility")
    _flag(cmd, enc.disallow_annotate, "disallow-annotate")
    _flag(cmd, enc.disallow_modify, "disallow-modify")
    _flag(cmd, enc.allow_assembly, "allow-assembly")

    raster = config.raster
    _option(cmd, raster.format, "raster-format")
    _option(cmd, raster.jpeg_quality, "raster-jpeg-quality")
    _option(cmd, raster.page, "raster-pages")
    _option(cmd, raster.dpi, "raster-dpi")
    _option(cmd, raster.threads, "raster-threads")
    _option(cmd, raster.background, "raster-background")

    for key, value in config.extra_options:
        cmd.append(to_command(key, value))

    return cmd
