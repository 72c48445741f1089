from data_designer.plugins.plugin import Plugin, PluginType

slop_score_plugin = Plugin(
    config_qualified_name="data_designer_slop_score.config.SlopScoreColumnConfig",
    impl_qualified_name="data_designer_slop_score.generator.SlopScoreColumnGenerator",
    plugin_type=PluginType.COLUMN_GENERATOR,
)
